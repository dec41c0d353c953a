"""End-to-end import: collect the page, sample frames, call the service, match."""
from dataclasses import dataclass
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from workout_import.collector.frame_sampler import FrameSampler, check_ffmpeg
from workout_import.collector.media_resolver import MediaResolver, MediaSource, page_media_source
from workout_import.collector.page_collector import PageDataCollector
from workout_import.collector.request_builder import (
    SERVICE_UNREACHABLE, ExtractionRequestBuilder, ImportServiceClient
)
from workout_import.config.schemas import DEFAULT_WORKOUT_NAME
from workout_import.core.config import settings
from workout_import.core.exceptions import NoExtractableDataError
from workout_import.models.extraction import CollectedPageData, ExtractedFrame, ExtractionSource
from workout_import.models.workout import ProcessResult
from workout_import.services.exercise_catalog import ExerciseCatalog, get_exercise_catalog
from workout_import.services.exercise_matcher import ExerciseMatcher
from workout_import.services.inference_service import NO_EXERCISES
from workout_import.services.review_service import ReviewSession
from workout_import.utils.logging import CorrelatedLogger
from workout_import.utils.validators import URLValidator


@dataclass
class ImportOutcome:
    """Service result plus, on success, the review session built from it."""
    result: ProcessResult
    session: Optional[ReviewSession] = None

    @property
    def success(self) -> bool:
        return self.session is not None

    @property
    def error(self) -> Optional[str]:
        return None if self.success else (self.result.error or NO_EXERCISES)


def should_sample_frames(platform: ExtractionSource, page_data: Optional[CollectedPageData]) -> bool:
    """Instagram always needs frames; TikTok only when stickers are too few for the fast path."""
    if platform == ExtractionSource.INSTAGRAM:
        return True
    return page_data is None or page_data.sticker_count() < settings.fast_path_min_stickers


class ImportOrchestrator:
    """Runs the collector side of an import and hands the result to review."""

    def __init__(
        self,
        collector: Optional[PageDataCollector] = None,
        sampler: Optional[FrameSampler] = None,
        media_resolver: Optional[MediaResolver] = None,
        client: Optional[ImportServiceClient] = None,
        catalog: Optional[ExerciseCatalog] = None,
        matcher: Optional[ExerciseMatcher] = None
    ):
        self.collector = collector or PageDataCollector()
        self.sampler = sampler or FrameSampler()
        self.media_resolver = media_resolver or MediaResolver()
        self.client = client or ImportServiceClient()
        self.catalog = catalog if catalog is not None else get_exercise_catalog()
        self.matcher = matcher or ExerciseMatcher(self.catalog)
        self.logger = CorrelatedLogger(__name__)

    async def run(self, url: str, platform: Optional[ExtractionSource] = None) -> ImportOutcome:
        """Import one shared video.

        Raises:
            NoExtractableDataError: If nothing was collected and the service is unreachable
        """
        platform = platform or URLValidator.detect_platform(url)
        self.logger.info(f"Importing {platform.value} video: {url}")

        page_data = await self._collect(url, platform)
        frames = await self._sample_frames(url, platform, page_data)

        request = ExtractionRequestBuilder.build(url, platform, page_data, frames)
        result = await self.client.submit(request)

        collected_nothing = (page_data is None or not page_data.has_data) and not frames
        if collected_nothing and not result.success and result.error == SERVICE_UNREACHABLE:
            raise NoExtractableDataError(url)

        if not result.success or not result.exercises:
            self.logger.info(f"Import did not produce exercises: {result.error}")
            return ImportOutcome(result=result)

        matches = self.matcher.match(result.exercises)
        session = ReviewSession(result.workout_name or DEFAULT_WORKOUT_NAME, matches, self.catalog)
        return ImportOutcome(result=result, session=session)

    async def _collect(self, url: str, platform: ExtractionSource) -> Optional[CollectedPageData]:
        try:
            return await self.collector.collect(url, platform)
        except PlaywrightError as e:
            # Browser missing or crashed; the server-side scrape can still run
            self.logger.warning(f"Page collection failed: {str(e)}")
            return None

    async def _sample_frames(
        self,
        url: str,
        platform: ExtractionSource,
        page_data: Optional[CollectedPageData]
    ) -> List[ExtractedFrame]:
        if not should_sample_frames(platform, page_data):
            self.logger.info("Rich sticker data on page, skipping frame sampling")
            return []

        source = page_media_source(page_data) or await self._resolve_media(url)
        if source is None:
            return []

        if not check_ffmpeg(self.sampler.binary):
            self.logger.warning("ffmpeg not available, skipping frame sampling")
            return []

        return await self.sampler.sample(source.url, source.duration)

    async def _resolve_media(self, url: str) -> Optional[MediaSource]:
        source = await self.media_resolver.resolve(url)
        if source:
            self.logger.info(f"Resolved media with yt-dlp ({source.duration:.0f}s)")
        return source
