"""Chooses the inference strategy for a request and runs it."""
from typing import List, Optional

from workout_import.core.config import settings
from workout_import.models.extraction import DownloadedImage, ExtractionSource, ScrapedData
from workout_import.models.workout import ImportPath, ProcessResult
from workout_import.services.image_downloader import ImageDownloader
from workout_import.services.inference_service import WorkoutInferenceService
from workout_import.utils.logging import CorrelatedLogger

FAST = "fast"
FRAMES = "frames"
UNIFIED = "unified"


def select_path(scraped: ScrapedData, usable_frame_count: int) -> str:
    """Pick a strategy. Checked in strict order, first match wins.

    ``fast`` needs at least ``fast_path_min_stickers`` stickers that read as a workout;
    ``frames`` needs at least ``frames_path_min_frames`` usable client frames;
    everything else goes through the unified prompt.
    """
    if len(scraped.raw_stickers) >= settings.fast_path_min_stickers and scraped.has_sticker_text:
        return FAST
    if usable_frame_count >= settings.frames_path_min_frames:
        return FRAMES
    return UNIFIED


def unified_path_tag(covers: List[DownloadedImage]) -> ImportPath:
    """The unified prompt is reported as ``fallback`` when it saw images, else ``caption``."""
    return ImportPath.FALLBACK if covers else ImportPath.CAPTION


class PathRouter:
    """Runs the selected strategy. Covers are only downloaded for strategies that send images."""

    def __init__(
        self,
        inference: Optional[WorkoutInferenceService] = None,
        downloader: Optional[ImageDownloader] = None
    ):
        self.inference = inference or WorkoutInferenceService()
        self.downloader = downloader or ImageDownloader()
        self.logger = CorrelatedLogger(__name__)

    async def route(
        self,
        scraped: ScrapedData,
        frames: List[DownloadedImage],
        platform: ExtractionSource,
        request_id: Optional[str] = None
    ) -> ProcessResult:
        if request_id:
            self.logger.request_id = request_id

        path = select_path(scraped, len(frames))

        if path == FAST:
            self.logger.info(f"Fast path: rich sticker data ({len(scraped.raw_stickers)} stickers)")
            result = await self.inference.infer_fast(scraped, platform, request_id)
            return result.model_copy(update={"path": ImportPath.FAST})

        if path == FRAMES:
            covers = await self.downloader.download_covers(
                scraped.image_urls, limit=settings.max_covers_with_frames
            )
            self.logger.info(
                f"Frames path: {len(frames)} frames + {len(covers)} covers ({platform.value})"
            )
            result = await self.inference.infer_frames(scraped, platform, frames, covers, request_id)
            return result.model_copy(update={"path": ImportPath.FRAMES})

        covers = await self.downloader.download_covers(scraped.image_urls)
        self.logger.info(f"Unified path: {len(covers)} covers, combining all data sources ({platform.value})")
        result = await self.inference.infer_unified(scraped, platform, covers, request_id)
        return result.model_copy(update={"path": unified_path_tag(covers)})
