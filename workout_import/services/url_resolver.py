"""Short-link resolution for TikTok share URLs."""
from typing import Optional

import aiohttp

from workout_import.core.config import settings
from workout_import.models.extraction import ExtractionSource
from workout_import.utils.logging import CorrelatedLogger
from workout_import.utils.validators import URLValidator

MOBILE_SAFARI_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class URLResolver:
    """Resolves ``vm.tiktok.com``, ``vt.tiktok.com`` and ``/t/`` links to canonical URLs."""

    def __init__(self):
        self.logger = CorrelatedLogger(__name__)

    async def resolve(
        self,
        url: str,
        platform: ExtractionSource,
        request_id: Optional[str] = None
    ) -> str:
        """Return the canonical URL, or the input unchanged when it is not a short link
        or the redirect cannot be followed."""
        if request_id:
            self.logger.request_id = request_id

        if platform is not ExtractionSource.TIKTOK or not URLValidator.is_short_link(url, platform):
            return url

        try:
            resolved = await self._follow_redirects(url)
            self.logger.info(f"Resolved short URL {url} -> {resolved}")
            return resolved
        except Exception as e:
            self.logger.warning(f"Failed to resolve short URL {url}: {str(e)}")
            return url

    async def _follow_redirects(self, url: str) -> str:
        timeout = aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.head(
                url,
                allow_redirects=True,
                headers={"User-Agent": MOBILE_SAFARI_UA}
            ) as response:
                return str(response.url)
