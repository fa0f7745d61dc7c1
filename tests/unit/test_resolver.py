"""Unit tests for SubtitleResolver.

Covers the embedded-track short-circuit, existing-file reuse, the
download-and-rescan path and the stream placeholder handling.
"""

import threading
from unittest.mock import MagicMock

import pytest

from autosub.models import FetchResult, MediaReference, ResolutionState, SubtitleTrack
from autosub.services.resolver import SubtitleResolver

STREAM_URL = "http://h/Surf%20Girls%20Hawaii%20S01E02.mp4?x=1#y"
S = ResolutionState


def local(path) -> MediaReference:
    return MediaReference.from_path(str(path))


@pytest.mark.unit
class TestTransitions:
    def test_valid_path(self, resolver):
        assert resolver.can_transition(S.IDLE, S.CHECK_EMBEDDED)
        assert resolver.can_transition(S.CHECK_EXISTING, S.NEEDS_FETCH)
        assert resolver.can_transition(S.FETCHING, S.RESCAN)

    def test_invalid_path(self, resolver):
        assert not resolver.can_transition(S.FETCHING, S.DONE)
        assert not resolver.can_transition(S.SATISFIED, S.FETCHING)
        assert not resolver.can_transition(S.DONE, S.IDLE)


@pytest.mark.unit
class TestLocalScenarios:
    def test_existing_subtitle_loaded_without_fetch(
        self, resolver, fake_fetcher, make_settings, video_path, video_dir, messages
    ):
        """A: matching file next to the video is loaded, nothing downloaded."""
        (video_dir / "Show.S01E02.en.srt").write_text("sub")

        result = resolver.resolve(local(video_path), make_settings(), manual=False)

        assert result.loaded == [video_dir / "Show.S01E02.en.srt"]
        assert not result.fetched
        assert fake_fetcher.calls == []
        assert result.history == [S.IDLE, S.CHECK_EMBEDDED, S.CHECK_EXISTING, S.SATISFIED, S.DONE]
        assert "autosub: loading subtitle: Show.S01E02.en.srt" in messages
        assert "autosub: using existing local subtitles (1); no download" in messages

    def test_download_then_rescan(
        self, resolver, fake_fetcher, make_settings, video_path, video_dir, messages
    ):
        """B: empty folder, downloader writes a file, rescan loads it."""
        fake_fetcher.writes = ["Show.S01E02.en.srt"]

        result = resolver.resolve(local(video_path), make_settings(languages="en,eng"), manual=False)

        assert result.loaded == [video_dir / "Show.S01E02.en.srt"]
        assert result.fetched
        assert result.fetch_result.success
        assert fake_fetcher.calls[0]["media_path"] == video_path
        assert fake_fetcher.calls[0]["target_dir"] == video_dir
        assert fake_fetcher.calls[0]["languages"] == ["en", "eng"]
        assert result.history[-4:] == [S.NEEDS_FETCH, S.FETCHING, S.RESCAN, S.DONE]
        assert "autosub: downloading subtitles to local folder…" in messages
        assert "autosub: subtitle download finished" in messages

    def test_fetch_failure_still_rescans(self, resolver, fake_fetcher, make_settings, video_path, video_dir, messages):
        fake_fetcher.success = False
        fake_fetcher.writes = ["Show.S01E02.srt"]  # partial provider success

        result = resolver.resolve(local(video_path), make_settings(), manual=True)

        assert not result.fetch_result.success
        assert result.loaded == [video_dir / "Show.S01E02.srt"]
        assert "autosub: subtitle download FAILED" in messages
        assert result.final_state == S.DONE

    def test_nothing_found_anywhere(self, resolver, make_settings, video_path, video_dir, messages):
        result = resolver.resolve(local(video_path), make_settings(), manual=False)

        assert result.loaded == []
        assert result.fetched
        assert result.final_state == S.DONE
        assert f"autosub: no matching subtitles in {video_dir}" in messages

    def test_subdir_mode_looks_in_subfolder(self, resolver, fake_fetcher, make_settings, video_path, video_dir):
        (video_dir / "Show.S01E02.en.srt").write_text("ignored, wrong folder")
        fake_fetcher.writes = ["Show.S01E02.en.srt"]

        result = resolver.resolve(
            local(video_path), make_settings(local_download_mode="subdir"), manual=False
        )

        assert result.loaded == [video_dir / "subs" / "Show.S01E02.en.srt"]
        assert fake_fetcher.calls[0]["target_dir"] == video_dir / "subs"

    def test_second_pass_does_not_fetch_again(self, resolver, fake_fetcher, make_settings, video_path):
        fake_fetcher.writes = ["Show.S01E02.en.srt"]
        settings = make_settings()

        first = resolver.resolve(local(video_path), settings, manual=False)
        second = resolver.resolve(local(video_path), settings, manual=False)

        assert first.fetched
        assert not second.fetched
        assert len(fake_fetcher.calls) == 1
        assert second.loaded == first.loaded


@pytest.mark.unit
class TestEmbeddedTracks:
    def test_auto_pass_skips_when_track_present(
        self, notifier, make_settings, video_path, video_dir, messages
    ):
        (video_dir / "Show.S01E02.en.srt").write_text("sub")
        factory = MagicMock()
        resolver = SubtitleResolver(notifier, fetcher_factory=factory)

        result = resolver.resolve(
            local(video_path),
            make_settings(),
            manual=False,
            tracks=[SubtitleTrack(type="sub", lang="EN")],
        )

        assert result.loaded == []
        assert result.history == [S.IDLE, S.CHECK_EMBEDDED, S.DONE]
        assert factory.call_count == 0
        assert "autosub: subtitle already present (en)" in messages

    def test_manual_pass_ignores_embedded_tracks(self, resolver, make_settings, video_path, video_dir):
        (video_dir / "Show.S01E02.en.srt").write_text("sub")

        result = resolver.resolve(
            local(video_path),
            make_settings(),
            manual=True,
            tracks=[SubtitleTrack(type="sub", lang="en")],
        )

        assert S.CHECK_EMBEDDED not in result.history
        assert result.loaded == [video_dir / "Show.S01E02.en.srt"]

    def test_always_policy_ignores_embedded_tracks(self, resolver, fake_fetcher, make_settings, video_path):
        result = resolver.resolve(
            local(video_path),
            make_settings(download_when_subs_present="always"),
            manual=False,
            tracks=[SubtitleTrack(type="sub", lang="en")],
        )

        assert S.CHECK_EMBEDDED not in result.history
        assert len(fake_fetcher.calls) == 1

    def test_track_in_other_language_does_not_skip(self, resolver, fake_fetcher, make_settings, video_path):
        result = resolver.resolve(
            local(video_path),
            make_settings(languages="en"),
            manual=False,
            tracks=[SubtitleTrack(type="sub", lang="de")],
        )

        assert result.fetched
        assert len(fake_fetcher.calls) == 1


@pytest.mark.unit
class TestStreamScenarios:
    def test_stream_dir_not_configured(self, resolver, fake_fetcher, make_settings, messages):
        """C: no stream directory means no lookup and no download."""
        result = resolver.resolve(MediaReference.from_path(STREAM_URL), make_settings(), manual=True)

        assert result.loaded == []
        assert not result.fetched
        assert fake_fetcher.calls == []
        assert result.history == [S.IDLE, S.CHECK_EXISTING, S.DONE]
        assert "autosub: stream_download_dir is not set; skipping stream subtitles" in messages

    def test_existing_stream_subtitle(self, resolver, fake_fetcher, make_settings, stream_dir, messages):
        """D: file named after the stream is loaded without a placeholder or download."""
        (stream_dir / "Surf Girls Hawaii S01E02.en.srt").write_text("sub")

        result = resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=False,
        )

        assert result.loaded == [stream_dir / "Surf Girls Hawaii S01E02.en.srt"]
        assert fake_fetcher.calls == []
        assert not (stream_dir / "Surf Girls Hawaii S01E02.dummy.mkv").exists()
        assert "autosub: using existing stream subtitles (1); no download" in messages

    def test_stream_download_uses_placeholder(self, resolver, fake_fetcher, make_settings, stream_dir):
        """E: placeholder exists while the downloader runs and is gone afterwards."""
        fake_fetcher.writes = ["Surf Girls Hawaii S01E02.en.srt"]

        result = resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=False,
        )

        dummy = stream_dir / "Surf Girls Hawaii S01E02.dummy.mkv"
        call = fake_fetcher.calls[0]
        assert call["media_path"] == dummy
        assert call["media_existed"]
        assert not dummy.exists()
        assert result.loaded == [stream_dir / "Surf Girls Hawaii S01E02.en.srt"]

    def test_placeholder_removed_when_fetch_fails(self, resolver, fake_fetcher, make_settings, stream_dir):
        fake_fetcher.success = False

        result = resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=True,
        )

        assert not result.fetch_result.success
        assert list(stream_dir.iterdir()) == []

    def test_stream_never_loads_unrelated_language_files(
        self, resolver, fake_fetcher, make_settings, stream_dir
    ):
        (stream_dir / "Another Show S03E04.en.srt").write_text("sub")

        result = resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=True,
        )

        assert result.loaded == []
        assert len(fake_fetcher.calls) == 1

    def test_existing_dummy_file_survives_download(self, resolver, fake_fetcher, make_settings, stream_dir):
        dummy = stream_dir / "Surf Girls Hawaii S01E02.dummy.mkv"
        dummy.write_text("not ours")

        resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=True,
        )

        assert fake_fetcher.calls[0]["media_path"] == dummy
        assert dummy.read_text() == "not ours"

    def test_encoded_separator_in_url_stays_in_stream_dir(
        self, resolver, fake_fetcher, make_settings, stream_dir, tmp_path
    ):
        outside = tmp_path / "victim.dummy.mkv"
        outside.write_text("not ours")
        fake_fetcher.writes = [".._victim.en.srt"]

        result = resolver.resolve(
            MediaReference.from_path("http://h/..%2Fvictim.mp4"),
            make_settings(stream_download_dir=str(stream_dir)),
            manual=True,
        )

        media_path = fake_fetcher.calls[0]["media_path"]
        assert media_path == stream_dir / ".._victim.dummy.mkv"
        assert not media_path.exists()
        assert outside.read_text() == "not ours"
        assert result.loaded == [stream_dir / ".._victim.en.srt"]

    def test_custom_placeholder_extension(self, resolver, fake_fetcher, make_settings, stream_dir):
        resolver.resolve(
            MediaReference.from_path(STREAM_URL),
            make_settings(stream_download_dir=str(stream_dir), placeholder_extension=".mp4"),
            manual=True,
        )

        assert fake_fetcher.calls[0]["media_path"].name == "Surf Girls Hawaii S01E02.dummy.mp4"


@pytest.mark.unit
class TestPassGuard:
    def test_no_path(self, resolver, make_settings, messages):
        result = resolver.resolve(None, make_settings(), manual=True)

        assert result.history == [S.IDLE, S.DONE]
        assert "autosub: no path, cannot handle subtitles" in messages

    def test_passes_are_serialized(self, notifier, make_settings, video_path):
        inside = threading.Event()
        release = threading.Event()
        active = []
        overlaps = []

        class SlowFetcher:
            def fetch(self, media_path, target_dir, languages):
                if active:
                    overlaps.append(True)
                active.append(1)
                inside.set()
                release.wait(timeout=5)
                active.pop()
                return FetchResult(success=True)

        resolver = SubtitleResolver(notifier, fetcher_factory=lambda s: SlowFetcher())
        settings = make_settings()
        first = threading.Thread(
            target=resolver.resolve, args=(local(video_path), settings), kwargs={"manual": True}
        )
        second = threading.Thread(
            target=resolver.resolve, args=(local(video_path), settings), kwargs={"manual": True}
        )

        first.start()
        assert inside.wait(timeout=5)
        second.start()
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert overlaps == []
