"""Trigger front-end - connects a media player host to the resolver.

Two activation paths end in the same resolver call:

- automatic: the host's ``file-loaded`` event, only in ``auto`` mode
- manual: the ``download`` key binding or the ``autosub-download``
  script message, in any mode
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from autosub.config import Settings
from autosub.models import MediaReference, ResolutionResult, SubtitleTrack
from autosub.services.notifier import Notifier
from autosub.services.resolver import SubtitleResolver

logger = logging.getLogger(__name__)

FILE_LOADED_EVENT = "file-loaded"
KEY_BINDING_NAME = "download"
SCRIPT_MESSAGE_NAME = "autosub-download"


class MediaHost(Protocol):
    """What autosub needs from the media player."""

    def get_path(self) -> str | None: ...

    def get_tracks(self) -> list[SubtitleTrack]: ...

    def add_subtitle(self, path: Path) -> None: ...

    def show_message(self, text: str) -> None: ...

    def register_event(self, name: str, handler: Callable[[], None]) -> None: ...

    def add_key_binding(self, name: str, handler: Callable[[], None]) -> None: ...

    def register_script_message(self, name: str, handler: Callable[[], None]) -> None: ...


class TriggerFrontEnd:
    """Runs resolution passes for a host and loads what they find."""

    def __init__(
        self,
        host: MediaHost,
        settings: Settings,
        resolver: SubtitleResolver | None = None,
    ):
        self._host = host
        self._settings = settings
        self._resolver = resolver or SubtitleResolver(Notifier(host.show_message))

    def register(self) -> None:
        """Hook the automatic and manual triggers into the host."""
        self._host.register_event(FILE_LOADED_EVENT, self.on_file_loaded)
        self._host.add_key_binding(KEY_BINDING_NAME, self.manual_trigger)
        self._host.register_script_message(SCRIPT_MESSAGE_NAME, self.manual_trigger)
        logger.debug(f"Registered triggers (mode: {self._settings.mode})")

    def on_file_loaded(self) -> ResolutionResult | None:
        if self._settings.mode != "auto":
            return None
        return self.handle(manual=False)

    def manual_trigger(self) -> ResolutionResult:
        return self.handle(manual=True)

    def handle(self, manual: bool) -> ResolutionResult:
        path = self._host.get_path()
        media = MediaReference.from_path(path) if path else None
        result = self._resolver.resolve(
            media,
            self._settings,
            manual=manual,
            tracks=self._host.get_tracks() if media is not None else (),
        )
        for subtitle in result.loaded:
            self._host.add_subtitle(subtitle)
        return result
