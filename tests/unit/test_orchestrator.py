"""Unit tests for the collector-side import flow."""
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from workout_import.collector.media_resolver import MediaResolver, MediaSource, page_media_source
from workout_import.collector.orchestrator import ImportOrchestrator, should_sample_frames
from workout_import.collector.request_builder import SERVICE_UNREACHABLE
from workout_import.core.exceptions import NoExtractableDataError
from workout_import.models.extraction import CollectedPageData, ExtractedFrame, ExtractionSource
from workout_import.models.workout import CatalogExercise, InferredExercise, ProcessResult
from workout_import.services.exercise_catalog import ExerciseCatalog

TIKTOK_URL = "https://www.tiktok.com/@coach/video/7301234567890123456"
REEL_URL = "https://www.instagram.com/reel/Cxyz123/"


def tiktok_page(sticker_count, **extra):
    detail = {"itemInfo": {"itemStruct": {"stickersOnItem": [{"stickerText": ["s"]}] * sticker_count}}}
    return CollectedPageData(videoDetail=detail, hasData=True, **extra)


class TestShouldSampleFrames:

    def test_instagram_always(self):
        assert should_sample_frames(ExtractionSource.INSTAGRAM, CollectedPageData(hasData=True))

    def test_tiktok_with_rich_stickers_skips(self):
        assert not should_sample_frames(ExtractionSource.TIKTOK, tiktok_page(5))

    def test_tiktok_with_few_stickers_samples(self):
        assert should_sample_frames(ExtractionSource.TIKTOK, tiktok_page(4))

    def test_tiktok_without_page_samples(self):
        assert should_sample_frames(ExtractionSource.TIKTOK, None)


class TestPageMediaSource:

    def test_usable(self):
        source = page_media_source(CollectedPageData(videoPlayUrl="https://cdn/v.mp4", videoDuration=31))
        assert source == MediaSource(url="https://cdn/v.mp4", duration=31.0)

    @pytest.mark.parametrize("url,duration", [
        ("blob:https://www.instagram.com/abc", 30),
        ("https://cdn/v.mp4", 0),
        (None, 30),
    ])
    def test_unusable(self, url, duration):
        assert page_media_source(CollectedPageData(videoPlayUrl=url, videoDuration=duration)) is None


class TestMediaResolver:

    @pytest.mark.asyncio
    async def test_picks_best_video_format(self):
        info = {
            "duration": 42,
            "formats": [
                {"url": "https://cdn/low.mp4", "vcodec": "h264"},
                {"url": "https://cdn/high.mp4", "vcodec": "h264"},
                {"url": "https://cdn/audio.m4a", "vcodec": "none"},
            ]
        }
        ydl = MagicMock()
        ydl.extract_info.return_value = info
        ydl.__enter__.return_value = ydl

        with patch("workout_import.collector.media_resolver.yt_dlp.YoutubeDL", return_value=ydl):
            source = await MediaResolver().resolve(REEL_URL)

        assert source == MediaSource(url="https://cdn/high.mp4", duration=42.0)
        ydl.extract_info.assert_called_once_with(REEL_URL, download=False)

    @pytest.mark.asyncio
    async def test_download_error(self):
        import yt_dlp

        ydl = MagicMock()
        ydl.extract_info.side_effect = yt_dlp.utils.DownloadError("login required")
        ydl.__enter__.return_value = ydl

        with patch("workout_import.collector.media_resolver.yt_dlp.YoutubeDL", return_value=ydl):
            assert await MediaResolver().resolve(REEL_URL) is None


class TestImportOrchestrator:
    """Collect, sample, submit, then match."""

    @pytest.fixture
    def catalog(self):
        return ExerciseCatalog([CatalogExercise(id="back_squat", name="Barbell Back Squat", muscle="quads")])

    @pytest.fixture
    def collector(self):
        collector = Mock()
        collector.collect = AsyncMock(return_value=None)
        return collector

    @pytest.fixture
    def sampler(self):
        sampler = Mock()
        sampler.binary = "ffmpeg"
        sampler.sample = AsyncMock(return_value=[])
        return sampler

    @pytest.fixture
    def media_resolver(self):
        resolver = Mock()
        resolver.resolve = AsyncMock(return_value=None)
        return resolver

    @pytest.fixture
    def client(self):
        client = Mock()
        client.submit = AsyncMock(return_value=ProcessResult(
            success=True,
            workout_name="Leg Day",
            exercises=[InferredExercise(name="Barbell Back Squat", sets=4, reps=8)],
            confidence=0.9
        ))
        return client

    @pytest.fixture
    def orchestrator(self, collector, sampler, media_resolver, client, catalog):
        return ImportOrchestrator(
            collector=collector,
            sampler=sampler,
            media_resolver=media_resolver,
            client=client,
            catalog=catalog
        )

    @pytest.mark.asyncio
    async def test_success_builds_review_session(self, orchestrator, collector, sampler):
        collector.collect.return_value = tiktok_page(6)

        outcome = await orchestrator.run(TIKTOK_URL)

        assert outcome.success is True
        assert outcome.session.workout_name == "Leg Day"
        assert outcome.session.matches[0].matched is True
        sampler.sample.assert_not_called()

    @pytest.mark.asyncio
    async def test_page_media_is_sampled(self, orchestrator, collector, sampler, client, media_resolver):
        collector.collect.return_value = CollectedPageData(
            caption="leg day", videoSrcUrl="https://cdn/v.mp4", videoDuration=30, hasData=True
        )
        sampler.sample.return_value = [ExtractedFrame(data="abc", timestamp_ms=4285)]

        with patch("workout_import.collector.orchestrator.check_ffmpeg", return_value=True):
            await orchestrator.run(REEL_URL)

        sampler.sample.assert_awaited_once_with("https://cdn/v.mp4", 30.0)
        media_resolver.resolve.assert_not_called()
        sent = client.submit.call_args[0][0]
        assert sent.video_frames == ["abc"]
        assert sent.platform == ExtractionSource.INSTAGRAM

    @pytest.mark.asyncio
    async def test_blob_media_falls_back_to_resolver(self, orchestrator, collector, sampler, media_resolver):
        collector.collect.return_value = CollectedPageData(
            caption="leg day", videoSrcUrl="blob:https://www.instagram.com/x", hasData=True
        )
        media_resolver.resolve.return_value = MediaSource(url="https://cdn/direct.mp4", duration=20.0)

        with patch("workout_import.collector.orchestrator.check_ffmpeg", return_value=True):
            await orchestrator.run(REEL_URL)

        sampler.sample.assert_awaited_once_with("https://cdn/direct.mp4", 20.0)

    @pytest.mark.asyncio
    async def test_no_ffmpeg_skips_sampling(self, orchestrator, collector, sampler):
        collector.collect.return_value = CollectedPageData(
            videoPlayUrl="https://cdn/v.mp4", videoDuration=30, hasData=True
        )

        with patch("workout_import.collector.orchestrator.check_ffmpeg", return_value=False):
            outcome = await orchestrator.run(REEL_URL)

        sampler.sample.assert_not_called()
        assert outcome.success is True

    @pytest.mark.asyncio
    async def test_nothing_collected_and_unreachable(self, orchestrator, client):
        client.submit.return_value = ProcessResult.failure(SERVICE_UNREACHABLE)

        with pytest.raises(NoExtractableDataError):
            await orchestrator.run(TIKTOK_URL)

    @pytest.mark.asyncio
    async def test_service_failure_is_returned(self, orchestrator, collector, client):
        collector.collect.return_value = tiktok_page(6)
        client.submit.return_value = ProcessResult.failure("This video does not appear to contain a workout")

        outcome = await orchestrator.run(TIKTOK_URL)

        assert outcome.success is False
        assert outcome.error == "This video does not appear to contain a workout"

    @pytest.mark.asyncio
    async def test_empty_exercises(self, orchestrator, collector, client):
        collector.collect.return_value = tiktok_page(6)
        client.submit.return_value = ProcessResult(success=True, exercises=[], confidence=0.8)

        outcome = await orchestrator.run(TIKTOK_URL)

        assert outcome.success is False
        assert "Could not find any exercises" in outcome.error

    @pytest.mark.asyncio
    async def test_default_workout_name(self, orchestrator, collector, client):
        collector.collect.return_value = tiktok_page(6)
        client.submit.return_value = ProcessResult(
            success=True, exercises=[InferredExercise(name="Squat")], confidence=0.8
        )

        outcome = await orchestrator.run(TIKTOK_URL)

        assert outcome.session.workout_name == "Imported Workout"
