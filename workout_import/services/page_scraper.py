"""Anti-blocking page fetching for TikTok and Instagram."""
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from workout_import.core.config import settings
from workout_import.services.cache_service import TtlCache, page_cache
from workout_import.services.signal_extractor import is_full_embed_page, is_full_page
from workout_import.utils.logging import CorrelatedLogger, MetricsLogger
from workout_import.utils.validators import URLValidator

BROWSER_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

# Crawlers the platform tends to serve full pages to
BOT_USER_AGENTS = {
    "googlebot": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    "bingbot": "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
    "facebook": "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
    "twitterbot": "Twitterbot/1.0",
    "applebot": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_5) AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "Version/13.1.1 Safari/605.1.15 (Applebot/0.1; +http://www.apple.com/go/applebot)"
    ),
    "duckduckbot": "DuckDuckBot/1.1; (+http://duckduckgo.com/duckduckbot.html)",
}

EMBED_URL = "https://www.tiktok.com/embed/v2/{video_id}"
OEMBED_URL = "https://www.tiktok.com/oembed?url={url}"


@dataclass
class PageFetchResult:
    """Raw HTML plus the strategy that produced it."""
    html: str = ""
    strategy: str = "none"
    full_page: bool = False


class PageScraper:
    """Fetches video pages, trying progressively more expensive strategies.

    TikTok order: page cache, embed endpoint, then a random sample of crawler user
    agents tried one at a time. The largest body seen is kept so a caller always gets
    the best partial page when every strategy is blocked.
    """

    def __init__(self, cache: Optional[TtlCache] = None):
        self.cache = cache if cache is not None else page_cache
        self.logger = CorrelatedLogger(__name__)
        self.metrics = MetricsLogger()

    async def fetch_tiktok_page(self, url: str, request_id: Optional[str] = None) -> PageFetchResult:
        if request_id:
            self.logger.request_id = request_id

        video_id = URLValidator.extract_content_id(url)

        if video_id:
            cached = self.cache.get(video_id)
            if cached:
                self.logger.info(f"Page cache hit for video {video_id} ({len(cached)} bytes)")
                return self._finish(request_id, PageFetchResult(cached, "cache", True))

            embed = await self._try_embed(video_id)
            if embed:
                self.cache.set(video_id, embed)
                return self._finish(request_id, PageFetchResult(embed, "embed", True))

        best = PageFetchResult()
        for name in self._pick_bot_agents():
            headers = dict(DEFAULT_HEADERS, **{"User-Agent": BOT_USER_AGENTS[name]})
            try:
                self.logger.info(f"Trying strategy: {name}")
                page_html = await self._get_text(url, headers)
            except Exception as e:
                self.logger.warning(f"Strategy '{name}' failed: {str(e)}")
                continue

            if page_html is None:
                continue

            full = is_full_page(page_html, settings.full_page_min_bytes)
            self.logger.info(f"Strategy '{name}': {len(page_html)} bytes, full={full}")

            if full:
                if video_id:
                    self.cache.set(video_id, page_html)
                return self._finish(request_id, PageFetchResult(page_html, name, True))

            if len(page_html) > len(best.html):
                best = PageFetchResult(page_html, name, False)

        self.logger.warning(
            f"All strategies failed. Best: {best.strategy} ({len(best.html)} bytes)"
        )
        return self._finish(request_id, best)

    async def fetch_instagram_page(self, url: str) -> Optional[str]:
        """Single fetch with a desktop browser UA; Instagram has no cheaper endpoint."""
        headers = dict(DEFAULT_HEADERS, **{"User-Agent": BROWSER_UA})
        page_html = await self._get_text(url, headers)
        if page_html is not None:
            self.logger.info(f"Instagram page HTML: {len(page_html)} bytes")
        return page_html

    async def fetch_oembed(self, url: str) -> Optional[Dict[str, Any]]:
        """Fetch TikTok oEmbed metadata (title, author, thumbnail). Never raises."""
        oembed_url = OEMBED_URL.format(url=quote(url, safe=""))
        try:
            timeout = aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(oembed_url, headers={"User-Agent": "WorkoutImport/1.0"}) as response:
                    if response.status != 200:
                        self.logger.warning(f"oEmbed failed: HTTP {response.status}")
                        return None
                    return await response.json(content_type=None)
        except Exception as e:
            self.logger.warning(f"oEmbed failed: {str(e)}")
            return None

    async def _try_embed(self, video_id: str) -> Optional[str]:
        embed_url = EMBED_URL.format(video_id=video_id)
        try:
            self.logger.info(f"Trying embed page: {embed_url}")
            page_html = await self._get_text(embed_url, dict(DEFAULT_HEADERS, **{"User-Agent": BROWSER_UA}))
        except Exception as e:
            self.logger.warning(f"Embed page failed: {str(e)}")
            return None

        if page_html and is_full_embed_page(page_html, settings.embed_page_min_bytes):
            self.logger.info(f"Embed page has full data ({len(page_html)} bytes)")
            return page_html
        return None

    def _pick_bot_agents(self) -> List[str]:
        names = list(BOT_USER_AGENTS)
        count = min(settings.bot_agent_attempts, len(names))
        return random.sample(names, count)

    async def _get_text(self, url: str, headers: Dict[str, str]) -> Optional[str]:
        """GET a URL following redirects. Returns None on a non-200 status."""
        timeout = aiohttp.ClientTimeout(total=settings.http_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers=headers, allow_redirects=True) as response:
                if response.status != 200:
                    self.logger.info(f"GET {url}: HTTP {response.status}")
                    return None
                return await response.text()

    def _finish(self, request_id: Optional[str], result: PageFetchResult) -> PageFetchResult:
        self.metrics.log_scrape_metrics(
            request_id=request_id,
            strategy=result.strategy,
            html_bytes=len(result.html),
            full_page=result.full_page
        )
        return result
