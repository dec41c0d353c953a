"""Playable media lookup for pages that only expose a blob: source."""
import asyncio
from dataclasses import dataclass
from typing import Optional

import yt_dlp

from workout_import.core.config import YTDLPConfig, settings
from workout_import.models.extraction import CollectedPageData
from workout_import.utils.logging import CorrelatedLogger


@dataclass
class MediaSource:
    url: str
    duration: float


def page_media_source(page_data: Optional[CollectedPageData]) -> Optional[MediaSource]:
    """Media URL and duration the page script saw, when both are usable."""
    if page_data is None:
        return None
    url = page_data.video_play_url
    duration = page_data.video_duration or 0
    if url and not url.startswith("blob:") and duration > 0:
        return MediaSource(url=url, duration=float(duration))
    return None


class MediaResolver:
    """Asks yt-dlp for the direct media URL of a shared video without downloading it."""

    def __init__(self):
        self.logger = CorrelatedLogger(__name__)

    async def resolve(self, url: str) -> Optional[MediaSource]:
        """Direct media URL and duration, or None when yt-dlp cannot read the page."""
        ydl_opts = YTDLPConfig.get_options(
            timeout=settings.media_resolve_timeout,
            retries=settings.media_resolve_retries
        )

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = await asyncio.to_thread(ydl.extract_info, url, download=False)
        except yt_dlp.utils.DownloadError as e:
            self.logger.warning(f"yt-dlp could not resolve media for {url}: {str(e)}")
            return None

        if not info:
            return None

        media_url = info.get("url") or self._best_format_url(info)
        duration = info.get("duration") or 0
        if not media_url or not duration:
            self.logger.info(f"yt-dlp returned no playable media for {url}")
            return None

        return MediaSource(url=media_url, duration=float(duration))

    @staticmethod
    def _best_format_url(info: dict) -> Optional[str]:
        # Formats are ordered worst to best
        for fmt in reversed(info.get("formats") or []):
            if fmt.get("url") and fmt.get("vcodec") != "none":
                return fmt["url"]
        return None
