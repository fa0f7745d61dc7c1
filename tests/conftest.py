"""Core pytest fixtures for autosub tests."""

from pathlib import Path

import pytest

from autosub.config import Settings
from autosub.models import FetchResult
from autosub.services.notifier import Notifier
from autosub.services.resolver import SubtitleResolver


class FakeFetcher:
    """Stands in for SubtitleFetcher; optionally writes subtitle files when called."""

    def __init__(self, writes: list[str] | None = None, success: bool = True):
        self.writes = writes or []
        self.success = success
        self.calls: list[dict] = []

    def fetch(self, media_path, target_dir, languages) -> FetchResult:
        media_path = Path(media_path)
        self.calls.append(
            {
                "media_path": media_path,
                "media_existed": media_path.exists(),
                "target_dir": Path(target_dir),
                "languages": list(languages),
            }
        )
        Path(target_dir).mkdir(parents=True, exist_ok=True)
        for name in self.writes:
            (Path(target_dir) / name).write_text("1\n00:00:00,000 --> 00:00:02,000\nHello\n")
        return FetchResult(
            success=self.success,
            command=["fake", "download"],
            returncode=0 if self.success else 1,
        )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep AUTOSUB_* variables from the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.upper().startswith("AUTOSUB_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_settings():
    """Factory for Settings with file logging disabled."""

    def _make(**overrides) -> Settings:
        overrides.setdefault("log_file", "")
        return Settings(**overrides)

    return _make


@pytest.fixture
def video_dir(tmp_path):
    """Folder holding a local video file."""
    folder = tmp_path / "videos"
    folder.mkdir()
    (folder / "Show.S01E02.mkv").write_bytes(b"")
    return folder


@pytest.fixture
def video_path(video_dir):
    return video_dir / "Show.S01E02.mkv"


@pytest.fixture
def stream_dir(tmp_path):
    folder = tmp_path / "stream-subs"
    folder.mkdir()
    return folder


@pytest.fixture
def messages():
    return []


@pytest.fixture
def notifier(messages):
    return Notifier(sink=messages.append)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def resolver(notifier, fake_fetcher):
    """Resolver wired to the recording notifier and the fake fetcher."""
    return SubtitleResolver(notifier, fetcher_factory=lambda settings: fake_fetcher)
