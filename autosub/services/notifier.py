"""Domain-specific status notifications.

Wraps the host's message sink (mpv's OSD, stderr for the CLI) with one
method per resolution event, so the engine never formats user-facing text.
Every message is also logged.
"""

import logging
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

MessageSink = Callable[[str], None]


class Notifier:
    """Status messages for a resolution pass."""

    PREFIX = "autosub: "

    def __init__(self, sink: MessageSink | None = None):
        self._sink = sink

    def send(self, text: str) -> None:
        message = self.PREFIX + text
        logger.info(message)
        if self._sink is not None:
            try:
                self._sink(message)
            except Exception as e:
                logger.error(f"Message sink failed: {e}", exc_info=True)

    # --- Pass lifecycle ---

    def no_path(self):
        self.send("no path, cannot handle subtitles")

    def already_embedded(self, lang: str):
        self.send(f"subtitle already present ({lang})")

    def stream_dir_not_configured(self):
        self.send("stream_download_dir is not set; skipping stream subtitles")

    # --- Existing subtitles ---

    def loading(self, filename: str):
        self.send(f"loading subtitle: {filename}")

    def using_existing(self, count: int, stream: bool):
        where = "stream" if stream else "local"
        self.send(f"using existing {where} subtitles ({count}); no download")

    def no_match(self, directory: Path):
        self.send(f"no matching subtitles in {directory}")

    # --- Downloads ---

    def download_started(self, stream: bool):
        if stream:
            self.send("downloading subtitles for stream…")
        else:
            self.send("downloading subtitles to local folder…")

    def download_finished(self, success: bool):
        if success:
            self.send("subtitle download finished")
        else:
            self.send("subtitle download FAILED")
