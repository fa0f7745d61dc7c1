"""User configuration for autosub.

Settings come from an mpv-style ``script-opts/autosub.conf`` file
(``key=value`` lines) and from ``AUTOSUB_*`` environment variables. The
loaded ``Settings`` value is passed explicitly into every resolution pass;
there is no module-level configuration singleton.
"""

import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autosub.core.errors import ConfigurationError, error_context

logger = logging.getLogger(__name__)

LOCAL_DOWNLOAD_MODES = ("filedir", "subdir", "fixed")
ACTIVATION_MODES = ("auto", "manual")


def default_conf_path() -> Path:
    """Return the conventional location of autosub.conf for the current platform."""
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / "mpv"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "mpv"
    return base / "script-opts" / "autosub.conf"


class Settings(BaseSettings):
    """autosub settings. Field names match the keys of autosub.conf."""

    model_config = SettingsConfigDict(
        env_prefix="AUTOSUB_",
        case_sensitive=False,
        extra="ignore",
    )

    # Comma-separated language codes, e.g. "en,eng,fr"
    languages: str = "en"

    # Local files: "filedir", "subdir" or "fixed"
    local_download_mode: str = "filedir"
    local_subdir: str = "subs"
    local_fixed_dir: str = ""

    # Streams are skipped while this is empty
    stream_download_dir: str = ""

    # Downloader CLI: <downloader> download -l <lang> -d <dir> -- <video_path>
    downloader: str = "subliminal"
    downloader_extra_args: str = ""

    # "no" = skip when a desired-language track exists, "always" = ignore tracks
    download_when_subs_present: str = "no"

    # "auto" = run on file load, "manual" = keybinding / script-message only
    mode: str = "auto"

    # Stream basenames: decode "+" as a space in addition to %XX escapes
    url_plus_as_space: bool = True
    placeholder_extension: str = "mkv"

    debug: bool = False
    log_file: str = "~/.autosub/autosub.log"

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        mode = str(value or "auto").strip().lower()
        if mode not in ACTIVATION_MODES:
            logger.warning(f"Unknown mode {value!r}, falling back to 'auto'")
            return "auto"
        return mode

    @field_validator("local_download_mode", mode="before")
    @classmethod
    def _normalize_local_mode(cls, value):
        mode = str(value or "filedir").strip().lower()
        if mode not in LOCAL_DOWNLOAD_MODES:
            logger.warning(f"Unknown local_download_mode {value!r}, using 'filedir'")
            return "filedir"
        return mode

    @field_validator("download_when_subs_present", mode="before")
    @classmethod
    def _normalize_policy(cls, value):
        return str(value or "no").strip().lower()

    @field_validator("placeholder_extension", mode="before")
    @classmethod
    def _strip_extension_dot(cls, value):
        ext = str(value or "").strip().lstrip(".")
        if not ext:
            raise ValueError("placeholder_extension must not be empty")
        return ext

    @property
    def always_download(self) -> bool:
        """True when embedded tracks never short-circuit an automatic pass."""
        return self.download_when_subs_present == "always"


def read_conf_file(path: Path) -> dict[str, str]:
    """Parse an mpv script-opts file into a dict of raw string values.

    Blank lines and lines starting with ``#`` are ignored. Unknown keys are
    logged and dropped.
    """
    with error_context(
        error_types=(OSError, UnicodeDecodeError),
        default_message=f"Failed to read configuration file {path}",
        log_level="warning",
        wrap_as=ConfigurationError,
    ):
        text = Path(path).read_text(encoding="utf-8")

    values: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigurationError(f"{path}:{lineno}: expected key=value, got {line!r}")
        key, value = line.split("=", 1)
        key = key.strip()
        if key not in Settings.model_fields:
            logger.warning(f"{path}:{lineno}: ignoring unknown option {key!r}")
            continue
        values[key] = value.strip()
    return values


def load_settings(conf_file: Path | str | None = None, **overrides) -> Settings:
    """Build Settings from an optional conf file, the environment and overrides.

    Values from the conf file and explicit overrides (overrides win) are
    passed as init values; environment variables fill the remaining fields.

    Raises:
        ConfigurationError: If the file is unreadable or a value is invalid
    """
    values: dict[str, object] = {}
    if conf_file is not None:
        conf_path = Path(conf_file).expanduser()
        values.update(read_conf_file(conf_path))
        logger.debug(f"Loaded {len(values)} option(s) from {conf_path}")

    values.update({k: v for k, v in overrides.items() if v is not None})

    with error_context(
        error_types=(ValidationError,),
        default_message="Invalid autosub configuration",
        log_level="warning",
        wrap_as=ConfigurationError,
    ):
        return Settings(**values)
