"""Fetcher - subtitle downloader CLI wrapper.

Runs an external downloader (subliminal by default) as:

    <program> download -l <lang> [-l <lang> ...] -d <dir> [extra args...] -- <video_path>

Streams are not local files, so for them the downloader is pointed at an
empty placeholder file created next to where the subtitles should land.
"""

import logging
import shutil
import subprocess
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from autosub.config import Settings
from autosub.core.errors import FetchError, error_context
from autosub.core.paths import ensure_dir, safe_filename
from autosub.models import FetchResult, ToolDetectionResult

logger = logging.getLogger(__name__)


class SubtitleFetcher:
    """Wrapper for the subtitle downloader command-line interface."""

    def __init__(self, program: str = "subliminal", extra_args: str = "") -> None:
        self.program = program
        self.extra_args = extra_args.split() if extra_args else []

    @classmethod
    def from_settings(cls, settings: Settings) -> "SubtitleFetcher":
        return cls(settings.downloader, settings.downloader_extra_args)

    def build_command(
        self, media_path: str | Path, target_dir: str | Path, languages: Sequence[str]
    ) -> list[str]:
        """Build the downloader argument vector.

        Languages are passed in configuration order, one ``-l`` pair each.
        Extra args are split on whitespace without any shell quoting rules.
        """
        cmd = [self.program, "download"]
        for lang in languages:
            cmd += ["-l", lang]
        cmd += ["-d", str(target_dir)]
        cmd += self.extra_args
        cmd += ["--", str(media_path)]
        return cmd

    def fetch(
        self, media_path: str | Path, target_dir: str | Path, languages: Sequence[str]
    ) -> FetchResult:
        """Run the downloader and wait for it.

        Returns:
            FetchResult; success only when the process started and exited 0
        """
        ensure_dir(target_dir)
        cmd = self.build_command(media_path, target_dir, languages)
        logger.info(f"Running downloader: {' '.join(cmd)}")

        try:
            result = self._run(cmd)
        except FetchError as e:
            return FetchResult(success=False, command=cmd, error_message=str(e))

        if result.stdout:
            logger.debug(f"Downloader stdout: {result.stdout[:500]}")
        if result.stderr:
            logger.debug(f"Downloader stderr: {result.stderr[:500]}")

        if result.returncode != 0:
            logger.error(f"Downloader failed (exit code {result.returncode})")
            return FetchResult(
                success=False,
                command=cmd,
                returncode=result.returncode,
                error_message=(result.stderr or "").strip()[:500] or None,
            )

        return FetchResult(success=True, command=cmd, returncode=0)

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess:
        with error_context(
            error_types=(OSError, subprocess.SubprocessError),
            default_message=f"Could not launch {self.program}",
            wrap_as=FetchError,
        ):
            return subprocess.run(cmd, capture_output=True, text=True)


@contextmanager
def placeholder(target_dir: str | Path, basename: str, extension: str = "mkv") -> Iterator[Path]:
    """Create ``{basename}.dummy.{extension}`` in target_dir for the duration of the block.

    The name never leaves target_dir: path separators in it are replaced.
    A file that already exists under that name is passed through untouched;
    only a file created here is removed, on every exit path. Creating or
    removing it is best effort: failures are logged and the block still runs.
    """
    path = Path(target_dir) / safe_filename(f"{basename}.dummy.{extension}")
    created = False
    if path.exists():
        logger.info(f"Placeholder {path} already exists; leaving it in place")
    else:
        with error_context(
            error_types=(OSError,),
            default_message=f"Could not create placeholder {path}",
            log_level="warning",
            suppress=True,
        ):
            # Exclusive create: never take over a file someone else made
            path.open("x").close()
            created = True
    try:
        yield path
    finally:
        if created:
            with error_context(
                error_types=(OSError,),
                default_message=f"Could not remove placeholder {path}",
                log_level="warning",
                suppress=True,
            ):
                path.unlink(missing_ok=True)


def detect_downloader(program: str) -> ToolDetectionResult:
    """Locate the downloader on PATH and ask it for its version."""
    resolved = shutil.which(program)
    if resolved is None:
        return ToolDetectionResult(found=False, error=f"{program!r} not found on PATH")

    try:
        result = subprocess.run(
            [resolved, "--version"],
            capture_output=True,
            timeout=10,
            text=True,
        )
    except subprocess.TimeoutExpired:
        return ToolDetectionResult(found=False, path=resolved, error="Command timeout (10s)")
    except OSError as e:
        return ToolDetectionResult(found=False, path=resolved, error=f"Execution failed: {e}")

    if result.returncode != 0:
        return ToolDetectionResult(found=False, path=resolved, error="Non-zero exit code")

    output = (result.stdout or result.stderr or "").strip()
    version = output.splitlines()[0] if output else "Unknown"
    return ToolDetectionResult(found=True, path=resolved, version=version)
