"""Request state machine of the scrape-and-parse service."""
from datetime import datetime
from typing import Optional, Tuple

from workout_import.core.exceptions import (
    ExtractionFailedError, NoSignalError, UnsupportedPlatformError,
    ValidationError, WorkoutImportBaseException
)
from workout_import.models.extraction import ExtractionSource, ScrapedData
from workout_import.models.requests import ProcessVideoRequest
from workout_import.models.workout import ProcessResult
from workout_import.services.cache_service import TtlCache, result_cache
from workout_import.services.data_merger import DataMerger
from workout_import.services.image_downloader import convert_client_frames
from workout_import.services.path_router import PathRouter
from workout_import.services.url_resolver import URLResolver
from workout_import.utils.logging import CorrelatedLogger, MetricsLogger
from workout_import.utils.validators import URLValidator

PROCESSING_FAILED = "Processing failed. Please try again."
INVALID_REQUEST = "Invalid request. Please share the video again."


class ImportService:
    """Runs one import request: validate, resolve, cache gate, merge, route, cache.

    ``process`` never raises. Typed failures surface their user-facing message,
    anything unexpected becomes a generic failure and is only logged.
    """

    def __init__(
        self,
        merger: Optional[DataMerger] = None,
        router: Optional[PathRouter] = None,
        resolver: Optional[URLResolver] = None,
        cache: Optional[TtlCache] = None
    ):
        self.resolver = resolver or URLResolver()
        self.merger = merger or DataMerger(resolver=self.resolver)
        self.router = router or PathRouter()
        self.cache = cache if cache is not None else result_cache
        self.logger = CorrelatedLogger(__name__)
        self.metrics = MetricsLogger()
        self.requests_processed = 0

    async def process(self, request: ProcessVideoRequest, request_id: Optional[str] = None) -> ProcessResult:
        if request_id:
            self.logger.request_id = request_id

        start_time = datetime.now()
        self.requests_processed += 1
        platform = request.platform or URLValidator.detect_platform(request.url or "")
        error_code = None

        try:
            result = await self._process(request, platform, request_id)
        except WorkoutImportBaseException as e:
            self.logger.warning(f"Import failed ({e.error_code}): {e.message} {e.details}")
            result = ProcessResult.failure(e.message)
            error_code = e.error_code
        except Exception as e:
            self.logger.exception(f"Unexpected import error: {str(e)}")
            result = ProcessResult.failure(PROCESSING_FAILED)
            error_code = "INTERNAL_ERROR"

        self.metrics.log_import_metrics(
            request_id=request_id or "-",
            platform=platform.value,
            success=result.success,
            processing_time_ms=int((datetime.now() - start_time).total_seconds() * 1000),
            path=result.path.value if result.path else None,
            cache_hit=bool(result.cached),
            exercise_count=len(result.exercises or []),
            error_code=error_code
        )
        return result

    async def _process(
        self,
        request: ProcessVideoRequest,
        platform: ExtractionSource,
        request_id: Optional[str]
    ) -> ProcessResult:
        url = request.url
        if not url or not isinstance(url, str):
            raise ValidationError("Missing video URL")

        if not URLValidator.is_supported_url(url):
            raise UnsupportedPlatformError(url, platform.value)

        self.logger.info(f"Processing {platform.value} URL: {url}")

        resolved_url = await self.resolver.resolve(url, platform, request_id)
        content_id = URLValidator.extract_content_id(resolved_url)

        if content_id:
            cached = self.cache.get(content_id)
            if cached is not None:
                self.logger.info(f"Result cache hit for {platform.value} video {content_id}")
                return cached.model_copy(update={"cached": True})

        scraped = await self.merger.merge(
            resolved_url, platform, request.client_extracted_data, request_id
        )
        if scraped is None:
            raise ExtractionFailedError(url, "neither client data nor server scrape produced anything")

        self._log_available_data(scraped, len(request.video_frames))
        self._check_signal(url, scraped, len(request.video_frames))

        if not scraped.full_page_fetched:
            self.logger.warning("Full page scrape failed (rate limited), proceeding with available data")

        frames = convert_client_frames(request.video_frames)
        self.logger.info(f"Client video frames: {len(frames)} usable of {len(request.video_frames)}")

        result = await self.router.route(scraped, frames, platform, request_id)

        if result.success and content_id:
            self.cache.set(content_id, result)
            self.logger.info(f"Cached result in memory for video {content_id}")

        return result

    def _check_signal(self, url: str, scraped: ScrapedData, frame_count: int) -> None:
        """Fail before any download or inference when there is nothing to read."""
        if (
            not scraped.has_sticker_text
            and not scraped.caption_text
            and not scraped.image_urls
            and frame_count == 0
        ):
            raise NoSignalError(url)

    def _log_available_data(self, scraped: ScrapedData, frame_count: int) -> None:
        self.logger.info(
            f"Data available: full_page={scraped.full_page_fetched} "
            f"stickers={len(scraped.raw_stickers)} sticker_chars={len(scraped.sticker_text)} "
            f"caption_chars={len(scraped.caption_text)} images={len(scraped.image_urls)} "
            f"relevant_stickers={scraped.has_sticker_text} frames={frame_count}"
        )

    def get_cache_stats(self) -> dict:
        """Get cache statistics."""
        return self.cache.get_stats()
