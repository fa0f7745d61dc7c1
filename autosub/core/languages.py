"""Language handling.

The configured ``languages`` string ("en, eng,FR") is used two ways: as a
case-insensitive set for track and file-name matching, and as an ordered
list for the downloader's ``-l`` arguments.
"""

from collections.abc import Iterable

from autosub.models import SubtitleTrack


def language_tokens(raw: str | None) -> list[str]:
    """Trimmed, non-empty comma-separated tokens in configuration order (case kept)."""
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def parse_languages(raw: str | None) -> frozenset[str]:
    """Lowercased language set. Any non-empty token is accepted."""
    return frozenset(token.lower() for token in language_tokens(raw))


def has_language_tag(filename: str, languages: Iterable[str]) -> bool:
    """True if ``filename`` ends in ``.{lang}`` or ``.{lang}.{ext}``.

    ``ext`` is the last extension of the name. Comparison is case-insensitive.
    """
    lower = filename.lower()
    dot = lower.rfind(".")
    stem = lower[:dot] if 0 <= dot < len(lower) - 1 else None
    for lang in languages:
        suffix = "." + lang.lower()
        if lower.endswith(suffix):
            return True
        if stem is not None and stem.endswith(suffix):
            return True
    return False


def find_desired_track(tracks: Iterable[SubtitleTrack], languages: frozenset[str]) -> str | None:
    """Return the lowercased language of the first subtitle track in ``languages``."""
    for track in tracks:
        if track.type == "sub" and track.lang:
            lang = track.lang.lower()
            if lang in languages:
                return lang
    return None
