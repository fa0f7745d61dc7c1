"""Command-line entry point for autosub.

``autosub resolve`` runs one resolution pass for a file or URL, with the
command line standing in for the media player: subtitle paths to load are
printed on stdout, status messages go to the log on stderr.
"""

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from autosub.config import Settings, default_conf_path, load_settings
from autosub.core.errors import ConfigurationError
from autosub.core.fetcher import detect_downloader
from autosub.core.logging import setup_logging
from autosub.models import SubtitleTrack
from autosub.services.triggers import FILE_LOADED_EVENT, SCRIPT_MESSAGE_NAME, TriggerFrontEnd


class CommandLineHost:
    """Media host backed by command-line arguments."""

    def __init__(self, path: str | None, track_langs: list[str] | None = None, out=None):
        self._path = path
        self._tracks = [SubtitleTrack(type="sub", lang=lang) for lang in track_langs or []]
        self._out = out or sys.stdout
        self._events: dict[str, Callable[[], None]] = {}
        self._bindings: dict[str, Callable[[], None]] = {}
        self._messages: dict[str, Callable[[], None]] = {}
        self.added: list[Path] = []

    def get_path(self) -> str | None:
        return self._path

    def get_tracks(self) -> list[SubtitleTrack]:
        return list(self._tracks)

    def add_subtitle(self, path: Path) -> None:
        self.added.append(path)
        print(path, file=self._out)

    def show_message(self, text: str) -> None:
        # Messages are already logged by the notifier
        pass

    def register_event(self, name: str, handler: Callable[[], None]) -> None:
        self._events[name] = handler

    def add_key_binding(self, name: str, handler: Callable[[], None]) -> None:
        self._bindings[name] = handler

    def register_script_message(self, name: str, handler: Callable[[], None]) -> None:
        self._messages[name] = handler

    def fire_event(self, name: str) -> None:
        handler = self._events.get(name)
        if handler is not None:
            handler()

    def send_script_message(self, name: str) -> None:
        handler = self._messages.get(name)
        if handler is not None:
            handler()


def _load(args) -> Settings:
    conf_file = args.config
    if conf_file is None and default_conf_path().is_file():
        conf_file = default_conf_path()
    overrides = {"debug": True} if args.debug else {}
    return load_settings(conf_file, **overrides)


def cmd_resolve(args, settings: Settings) -> int:
    host = CommandLineHost(args.media, track_langs=args.track_lang)
    front_end = TriggerFrontEnd(host, settings)
    front_end.register()

    if args.manual:
        host.send_script_message(SCRIPT_MESSAGE_NAME)
    elif settings.mode == "auto":
        host.fire_event(FILE_LOADED_EVENT)
    else:
        logger.warning("mode is 'manual'; pass --manual to run a resolution pass")
    return 0


def cmd_check(args, settings: Settings) -> int:
    for key, value in settings.model_dump().items():
        print(f"{key}={value}")

    detection = detect_downloader(settings.downloader)
    if detection.found:
        print(f"downloader: {detection.path} ({detection.version})")
        return 0
    print(f"downloader: NOT FOUND ({detection.error})")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autosub",
        description="Load existing subtitles for a video or download them with an external tool",
    )
    parser.add_argument("--config", type=Path, help="Path to autosub.conf")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Run one resolution pass for a file or URL")
    resolve.add_argument("media", help="Local video path or stream URL")
    resolve.add_argument(
        "--manual",
        action="store_true",
        help="Behave like the manual trigger (ignore embedded tracks, run in any mode)",
    )
    resolve.add_argument(
        "--track-lang",
        action="append",
        metavar="LANG",
        help="Pretend the video has an embedded subtitle track in LANG (repeatable)",
    )
    resolve.set_defaults(func=cmd_resolve)

    check = sub.add_parser("check", help="Show effective settings and detect the downloader")
    check.set_defaults(func=cmd_check)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load(args)
    except ConfigurationError as e:
        print(f"autosub: {e}", file=sys.stderr)
        return 2

    setup_logging(settings)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
