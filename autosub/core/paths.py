"""Path and name derivation for local files and stream URLs.

Turns the playing media into the basename used for subtitle matching and
the directory subtitles are looked up in (and downloaded to):

- Local files: next to the video (``filedir``), in a subfolder of it
  (``subdir``) or in a fixed folder (``fixed``).
- Streams: the configured ``stream_download_dir``; nothing happens without it.
"""

import logging
import os
import re
from pathlib import Path
from urllib.parse import unquote, unquote_plus

from autosub.config import Settings
from autosub.core.errors import handle_errors
from autosub.models import MediaReference, MediaTarget

logger = logging.getLogger(__name__)

# Last extension: a dot followed by anything but dots and path separators
_EXTENSION_RE = re.compile(r"\.[^./\\]+$")


def strip_extension(name: str) -> str:
    """Remove the last extension from a file name ("a.b.srt" -> "a.b")."""
    return _EXTENSION_RE.sub("", name)


def safe_filename(name: str) -> str:
    """Replace path separators so ``name`` stays a single path component."""
    return name.replace("/", "_").replace("\\", "_")


def url_decode(text: str, plus_as_space: bool = True) -> str:
    """Decode ``%XX`` escapes, and ``+`` as space when ``plus_as_space`` is set.

    Escapes are read as UTF-8, so ``%C3%A9`` becomes ``é``; invalid
    sequences are replaced rather than raised. An escaped ``%2B`` always
    stays a literal plus.
    """
    if not text:
        return ""
    if plus_as_space:
        return unquote_plus(text, errors="replace")
    return unquote(text, errors="replace")


def local_basename(path: str) -> str:
    """Basename of a local media file: its file name without the last extension."""
    return strip_extension(Path(path).name)


def stream_basename(url: str, plus_as_space: bool = True) -> str:
    """Basename of a stream URL.

    Query string and fragment are dropped, the last path segment is taken,
    percent-decoded and stripped of its extension. Separators produced by
    decoding (``%2F``, ``%5C``) become ``_``. A URL without a path segment
    falls back to the whole (trimmed) string.

    >>> stream_basename("http://h/Surf%20Girls%20Hawaii%20S01E02.mp4?x=1#y")
    'Surf Girls Hawaii S01E02'
    """
    trimmed = (url or "").strip()
    if not trimmed:
        return ""
    without_query = trimmed.split("#", 1)[0].split("?", 1)[0]
    segment = without_query.rsplit("/", 1)[-1]
    if not segment:
        return strip_extension(url_decode(without_query, plus_as_space=plus_as_space))
    return strip_extension(safe_filename(url_decode(segment, plus_as_space=plus_as_space)))


def local_target_dir(path: str, settings: Settings) -> Path:
    """Pick the subtitle directory for a local file according to local_download_mode."""
    file_dir = Path(path).parent
    if settings.local_download_mode == "fixed" and settings.local_fixed_dir:
        return Path(settings.local_fixed_dir).expanduser()
    if settings.local_download_mode == "subdir":
        return file_dir / settings.local_subdir
    return file_dir


@handle_errors(
    error_types=(OSError,),
    default_message="Could not create directory",
    log_level="warning",
    reraise=False,
)
def ensure_dir(path: Path | str | None) -> None:
    """Create ``path`` and its parents if missing. Failures are logged only."""
    if not path or not str(path).strip():
        return
    Path(path).mkdir(parents=True, exist_ok=True)


def list_files(directory: Path) -> list[str]:
    """Names of the regular files in ``directory``, in directory-listing order.

    A missing or unreadable directory yields an empty list.
    """
    try:
        with os.scandir(directory) as entries:
            return [entry.name for entry in entries if entry.is_file()]
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return []


def derive_target(media: MediaReference, settings: Settings) -> MediaTarget | None:
    """Resolve basename and subtitle directory for ``media``.

    Returns None for a stream when no stream_download_dir is configured.
    The returned directory has been ensured (best effort).
    """
    if media.is_stream:
        stream_dir = settings.stream_download_dir.strip()
        if not stream_dir:
            return None
        basename = stream_basename(media.path_or_url, plus_as_space=settings.url_plus_as_space)
        directory = Path(stream_dir).expanduser()
    else:
        basename = local_basename(media.path_or_url)
        directory = local_target_dir(media.path_or_url, settings)

    ensure_dir(directory)
    logger.debug(f"Resolved {media.kind.value} target: basename={basename!r} dir={directory}")
    return MediaTarget(basename=basename, directory=directory)
