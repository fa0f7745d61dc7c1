"""Subtitle matching - decides which files on disk belong to the playing media."""

from autosub.matcher.subtitle_matcher import (
    SUBTITLE_EXTENSIONS,
    MatchTier,
    match_subtitles,
    select_subtitles,
)

__all__ = ["SUBTITLE_EXTENSIONS", "MatchTier", "match_subtitles", "select_subtitles"]
