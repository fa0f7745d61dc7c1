"""Subtitle file selection.

Given a directory listing, picks the files that count as "the subtitles
for this media" using three tiers, first non-empty tier wins:

1. name contains the basename AND carries a wanted language tag
2. name contains the basename
3. name carries a wanted language tag (local files only)

Streams never fall back to tier 3: a shared stream directory would
otherwise hand out subtitles of unrelated videos.
"""

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from autosub.core.languages import has_language_tag
from autosub.core.paths import strip_extension

logger = logging.getLogger(__name__)

SUBTITLE_EXTENSIONS = (".srt", ".ass", ".ssa", ".vtt", ".sub", ".idx")


class MatchTier(str, Enum):
    """Which tier produced a match."""

    BASENAME_LANGUAGE = "basename+language"
    BASENAME = "basename"
    LANGUAGE = "language"
    NONE = "none"


def has_subtitle_ext(name: str) -> bool:
    return name.lower().endswith(SUBTITLE_EXTENSIONS)


def contains_basename(filename: str, lower_base: str) -> bool:
    """Substring test on the lowercased, extension-stripped file name."""
    return lower_base in strip_extension(filename.lower())


def select_subtitles(
    listing: Sequence[str],
    basename: str | None,
    languages: Iterable[str],
    stream_mode: bool,
) -> tuple[list[str], MatchTier]:
    """Apply the tiers to ``listing`` and return the selection with its tier.

    Args:
        listing: File names in directory-listing order
        basename: Matching key of the media; empty or None skips tiers 1-2
        languages: Wanted language tags
        stream_mode: Disables the language-only tier

    Returns:
        Selected names in listing order, and the tier that selected them
    """
    languages = [lang.lower() for lang in languages]
    candidates = [name for name in listing if has_subtitle_ext(name)]
    lower_base = basename.lower() if basename else ""

    tiers = []
    if lower_base:
        tiers.append(
            (
                MatchTier.BASENAME_LANGUAGE,
                lambda f: contains_basename(f, lower_base) and has_language_tag(f, languages),
            )
        )
        tiers.append((MatchTier.BASENAME, lambda f: contains_basename(f, lower_base)))
    if not stream_mode:
        tiers.append((MatchTier.LANGUAGE, lambda f: has_language_tag(f, languages)))

    for tier, predicate in tiers:
        selected = [name for name in candidates if predicate(name)]
        if selected:
            logger.debug(f"Tier {tier.value} matched {len(selected)} file(s): {selected}")
            return selected, tier

    return [], MatchTier.NONE


def match_subtitles(
    listing: Sequence[str],
    basename: str | None,
    languages: Iterable[str],
    stream_mode: bool,
) -> list[str]:
    """Subtitle files in ``listing`` that belong to the media, see select_subtitles()."""
    selected, _ = select_subtitles(listing, basename, languages, stream_mode)
    return selected
