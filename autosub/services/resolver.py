"""Subtitle resolver - one resolution pass per trigger.

A pass walks a small state machine:

    IDLE -> CHECK_EMBEDDED -> CHECK_EXISTING -> SATISFIED -> DONE
                                             -> NEEDS_FETCH -> FETCHING -> RESCAN -> DONE

Existing files always win over downloading, a failed download still ends
in a rescan, and no outcome of a pass raises.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from autosub.config import Settings
from autosub.core.fetcher import SubtitleFetcher, placeholder
from autosub.core.languages import find_desired_track, language_tokens, parse_languages
from autosub.core.paths import derive_target, list_files
from autosub.matcher.subtitle_matcher import select_subtitles
from autosub.models import (
    FetchResult,
    MediaReference,
    MediaTarget,
    ResolutionResult,
    ResolutionState,
    SubtitleTrack,
)
from autosub.services.notifier import Notifier

logger = logging.getLogger(__name__)

FetcherFactory = Callable[[Settings], SubtitleFetcher]


class SubtitleResolver:
    """Decides whether to load existing subtitles or download new ones."""

    VALID_TRANSITIONS = {
        ResolutionState.IDLE: {
            ResolutionState.CHECK_EMBEDDED,
            ResolutionState.CHECK_EXISTING,
            ResolutionState.DONE,
        },
        ResolutionState.CHECK_EMBEDDED: {ResolutionState.CHECK_EXISTING, ResolutionState.DONE},
        ResolutionState.CHECK_EXISTING: {
            ResolutionState.SATISFIED,
            ResolutionState.NEEDS_FETCH,
            ResolutionState.DONE,
        },
        ResolutionState.SATISFIED: {ResolutionState.DONE},
        ResolutionState.NEEDS_FETCH: {ResolutionState.FETCHING},
        ResolutionState.FETCHING: {ResolutionState.RESCAN},
        ResolutionState.RESCAN: {ResolutionState.DONE},
        ResolutionState.DONE: set(),  # Terminal state
    }

    def __init__(
        self,
        notifier: Notifier | None = None,
        fetcher_factory: FetcherFactory = SubtitleFetcher.from_settings,
    ):
        self._notifier = notifier or Notifier()
        self._fetcher_factory = fetcher_factory
        # Passes never overlap: they would race on the placeholder file
        self._lock = threading.Lock()

    def can_transition(self, from_state: ResolutionState, to_state: ResolutionState) -> bool:
        return to_state in self.VALID_TRANSITIONS.get(from_state, set())

    def _transition(self, result: ResolutionResult, to_state: ResolutionState) -> bool:
        from_state = result.final_state
        if not self.can_transition(from_state, to_state):
            logger.warning(f"Invalid resolution transition: {from_state.value} -> {to_state.value}")
            return False
        logger.debug(f"Resolution state: {from_state.value} -> {to_state.value}")
        result.history.append(to_state)
        return True

    def resolve(
        self,
        media: MediaReference | None,
        settings: Settings,
        *,
        manual: bool,
        tracks: Iterable[SubtitleTrack] = (),
    ) -> ResolutionResult:
        """Run one resolution pass.

        Args:
            media: What is playing, or None when the host has no path
            settings: Configuration for this pass
            manual: True for keybinding / script-message triggers; these
                skip the embedded-track check
            tracks: Tracks the host currently reports for the media

        Returns:
            ResolutionResult whose ``loaded`` paths should be added as tracks
        """
        with self._lock:
            result = ResolutionResult()
            if media is None:
                self._notifier.no_path()
                result.skipped_reason = "no path"
                self._transition(result, ResolutionState.DONE)
                return result

            logger.info(
                f"Resolving subtitles for {media.kind.value} {media.path_or_url!r} "
                f"({'manual' if manual else 'auto'})"
            )
            self._run_pass(media, settings, manual, tracks, result)
            return result

    def _run_pass(
        self,
        media: MediaReference,
        settings: Settings,
        manual: bool,
        tracks: Iterable[SubtitleTrack],
        result: ResolutionResult,
    ) -> None:
        languages = parse_languages(settings.languages)

        # Manual triggers always do the folder check, even with embedded subs
        if not manual and not settings.always_download:
            self._transition(result, ResolutionState.CHECK_EMBEDDED)
            lang = find_desired_track(tracks, languages)
            if lang is not None:
                self._notifier.already_embedded(lang)
                result.skipped_reason = f"embedded subtitle present ({lang})"
                self._transition(result, ResolutionState.DONE)
                return

        self._transition(result, ResolutionState.CHECK_EXISTING)
        target = derive_target(media, settings)
        if target is None:
            self._notifier.stream_dir_not_configured()
            result.skipped_reason = "stream_download_dir not set"
            self._transition(result, ResolutionState.DONE)
            return

        stream = media.is_stream
        existing = self._scan(target, languages, stream)
        if existing:
            self._transition(result, ResolutionState.SATISFIED)
            result.loaded = self._load_instructions(target, existing)
            self._notifier.using_existing(len(existing), stream)
            self._transition(result, ResolutionState.DONE)
            return

        self._transition(result, ResolutionState.NEEDS_FETCH)
        self._notifier.download_started(stream)
        self._transition(result, ResolutionState.FETCHING)
        result.fetch_result = self._fetch(media, target, settings)
        result.fetched = True
        self._notifier.download_finished(result.fetch_result.success)

        # Providers can succeed partially, so rescan whatever the outcome
        self._transition(result, ResolutionState.RESCAN)
        found = self._scan(target, languages, stream)
        if found:
            result.loaded = self._load_instructions(target, found)
        else:
            self._notifier.no_match(target.directory)
        self._transition(result, ResolutionState.DONE)

    def _scan(self, target: MediaTarget, languages: frozenset[str], stream: bool) -> list[str]:
        listing = list_files(target.directory)
        if not listing:
            logger.info(f"No files in {target.directory}")
            return []
        selected, tier = select_subtitles(listing, target.basename, languages, stream_mode=stream)
        logger.info(f"Matched {len(selected)} subtitle file(s) in {target.directory} (tier: {tier.value})")
        return selected

    def _load_instructions(self, target: MediaTarget, names: list[str]) -> list[Path]:
        paths = []
        for name in names:
            self._notifier.loading(name)
            paths.append(target.directory / name)
        return paths

    def _fetch(self, media: MediaReference, target: MediaTarget, settings: Settings) -> FetchResult:
        fetcher = self._fetcher_factory(settings)
        languages = language_tokens(settings.languages)

        if not media.is_stream:
            return fetcher.fetch(media.path_or_url, target.directory, languages)

        # The downloader wants a local file; give it an empty stand-in named after the stream
        with placeholder(
            target.directory, target.basename, settings.placeholder_extension
        ) as dummy_path:
            return fetcher.fetch(dummy_path, target.directory, languages)
