"""Data models shared by the resolution engine and its collaborators."""

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

_SCHEME_RE = re.compile(r"^[A-Za-z]+://")


class MediaKind(str, Enum):
    """Where the playing media lives."""

    LOCAL = "local"
    STREAM = "stream"


def is_stream(path: str | None) -> bool:
    """True when ``path`` starts with a URI scheme such as ``https://``."""
    return bool(path) and _SCHEME_RE.match(path) is not None


class MediaReference(BaseModel):
    """The thing currently playing."""

    kind: MediaKind
    path_or_url: str

    @classmethod
    def from_path(cls, path_or_url: str) -> "MediaReference":
        kind = MediaKind.STREAM if is_stream(path_or_url) else MediaKind.LOCAL
        return cls(kind=kind, path_or_url=path_or_url)

    @property
    def is_stream(self) -> bool:
        return self.kind == MediaKind.STREAM


class MediaTarget(BaseModel):
    """Basename and directory resolved once per resolution pass."""

    basename: str
    directory: Path


class SubtitleTrack(BaseModel):
    """A track reported by the media host."""

    type: str = "sub"
    lang: str | None = None
    title: str | None = None
    external: bool = False


class FetchResult(BaseModel):
    """Result of one external downloader invocation."""

    success: bool
    command: list[str] = Field(default_factory=list)
    returncode: int | None = None
    error_message: str | None = None


class ToolDetectionResult(BaseModel):
    """Detection result for the downloader executable."""

    found: bool
    path: str | None = None
    version: str | None = None
    error: str | None = None


class ResolutionState(str, Enum):
    """States of a single resolution pass."""

    IDLE = "idle"
    CHECK_EMBEDDED = "check_embedded"
    CHECK_EXISTING = "check_existing"
    SATISFIED = "satisfied"
    NEEDS_FETCH = "needs_fetch"
    FETCHING = "fetching"
    RESCAN = "rescan"
    DONE = "done"


class ResolutionResult(BaseModel):
    """Outcome of one resolution pass: the files to load plus how we got there."""

    loaded: list[Path] = Field(default_factory=list)
    history: list[ResolutionState] = Field(default_factory=lambda: [ResolutionState.IDLE])
    fetched: bool = False
    fetch_result: FetchResult | None = None
    skipped_reason: str | None = None

    @property
    def final_state(self) -> ResolutionState:
        return self.history[-1]
