"""Cover image download and client frame conversion for vision inference."""
import asyncio
import base64
from typing import List, Optional, Sequence

import aiohttp

from workout_import.core.config import settings
from workout_import.models.extraction import DownloadedImage
from workout_import.utils.logging import CorrelatedLogger
from workout_import.utils.validators import FrameValidator

IMAGE_DOWNLOAD_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

# Look at one more candidate than we keep, one of them is usually dead
CANDIDATE_SLACK = 1


def media_type_from_content_type(content_type: Optional[str]) -> str:
    content_type = (content_type or "").lower()
    if "png" in content_type:
        return "image/png"
    if "webp" in content_type:
        return "image/webp"
    if "gif" in content_type:
        return "image/gif"
    return "image/jpeg"


def convert_client_frames(frames: Sequence[str]) -> List[DownloadedImage]:
    """Keep client frames whose base64 payload is within bounds."""
    return [
        DownloadedImage(data=frame, media_type="image/jpeg")
        for frame in frames
        if FrameValidator.is_usable_client_frame(frame)
    ]


class ImageDownloader:
    """Downloads cover images concurrently; each download fails on its own."""

    def __init__(self):
        self.logger = CorrelatedLogger(__name__)

    async def download_covers(
        self,
        urls: Sequence[str],
        limit: Optional[int] = None
    ) -> List[DownloadedImage]:
        limit = settings.max_cover_images if limit is None else limit
        if limit <= 0:
            return []

        unique_urls = list(dict.fromkeys(u for u in urls if u))[:settings.max_cover_images + CANDIDATE_SLACK]
        if not unique_urls:
            return []

        timeout = aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            results = await asyncio.gather(
                *(self._download_one(session, url) for url in unique_urls)
            )

        images = [image for image in results if image is not None][:limit]
        self.logger.info(f"Cover images downloaded: {len(images)} of {len(unique_urls)} candidates")
        return images

    async def _download_one(self, session: aiohttp.ClientSession, url: str) -> Optional[DownloadedImage]:
        try:
            async with session.get(url, headers={"User-Agent": IMAGE_DOWNLOAD_UA}) as response:
                if response.status != 200:
                    self.logger.warning(f"Image download failed: HTTP {response.status}")
                    return None
                content_type = response.headers.get("content-type", "image/jpeg")
                body = await response.read()
        except Exception as e:
            self.logger.warning(f"Image download error for {url[:100]}: {str(e)}")
            return None

        return self.to_image(body, content_type)

    def to_image(self, body: bytes, content_type: Optional[str]) -> Optional[DownloadedImage]:
        """Encode a downloaded body, or None when it is outside the size bounds."""
        if len(body) > settings.cover_image_max_bytes:
            self.logger.warning(f"Image too large, skipping: {len(body)}")
            return None
        if len(body) < settings.cover_image_min_bytes:
            self.logger.warning(f"Image too small, skipping: {len(body)}")
            return None

        return DownloadedImage(
            data=base64.b64encode(body).decode("ascii"),
            media_type=media_type_from_content_type(content_type)
        )
