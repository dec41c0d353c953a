"""Merges client-collected page data with server-side scraping into one ScrapedData."""
from typing import Optional

from workout_import.core.config import settings
from workout_import.models.extraction import CollectedPageData, ExtractionSource, ScrapedData
from workout_import.services.page_scraper import PageScraper
from workout_import.services.signal_extractor import (
    SignalCollector, add_json_ld, extract_from_item_module, extract_from_universal_data,
    extract_instagram_html, extract_tiktok_html, is_full_page
)
from workout_import.services.sticker_parser import WorkoutRelevance
from workout_import.services.url_resolver import URLResolver
from workout_import.utils.logging import CorrelatedLogger


class DataMerger:
    """Produces the merged signal view a request is inferred from.

    Client-collected data wins: the page scraper only runs when the client sent nothing
    usable, because server fetches are rate limited and client pages are not.
    """

    def __init__(
        self,
        scraper: Optional[PageScraper] = None,
        resolver: Optional[URLResolver] = None,
        relevance: Optional[WorkoutRelevance] = None
    ):
        self.scraper = scraper or PageScraper()
        self.resolver = resolver or URLResolver()
        self.relevance = relevance
        self.logger = CorrelatedLogger(__name__)

    async def merge(
        self,
        url: str,
        platform: ExtractionSource,
        client_data: Optional[CollectedPageData] = None,
        request_id: Optional[str] = None
    ) -> Optional[ScrapedData]:
        """Return merged signals, or None when neither source produced anything."""
        if request_id:
            self.logger.request_id = request_id

        if client_data is not None and client_data.has_data:
            self.logger.info(f"Using client-extracted data for {platform.value}")
            scraped = self.build_from_client(client_data, platform)
            if scraped:
                return scraped
            self.logger.warning(f"Client data parsing yielded nothing for {platform.value}, falling back to server scrape")

        if platform is ExtractionSource.INSTAGRAM:
            return await self.extract_instagram_data(url)
        return await self.extract_tiktok_data(url, request_id)

    def build_from_client(self, client_data: CollectedPageData, platform: ExtractionSource) -> Optional[ScrapedData]:
        """Parse a collector snapshot. Client pages are always treated as full pages."""
        collector = SignalCollector(self.relevance)

        if platform is ExtractionSource.INSTAGRAM:
            collector.add_text("Caption", client_data.caption)
            collector.add_text("Description", client_data.og_description)
            collector.add_text("Title", client_data.og_title)
            collector.add_text("Meta description", client_data.meta_description, unique=True)
            collector.add_text("Page title", client_data.page_title)
            collector.add_image(client_data.og_image)
            collector.add_images(client_data.image_urls)
            if client_data.json_ld:
                # Thumbnails come from the rendered DOM images instead
                json_ld = {k: v for k, v in client_data.json_ld.items() if k != "thumbnailUrl"}
                add_json_ld(json_ld, collector)
        else:
            if client_data.video_detail:
                universal = {"__DEFAULT_SCOPE__": {"webapp.video-detail": client_data.video_detail}}
                collector.add_block(extract_from_universal_data(universal, collector))
            if client_data.item_module:
                collector.add_block(extract_from_item_module(client_data.item_module, collector))
            collector.add_text("Description", client_data.og_description)
            collector.add_text("Meta description", client_data.meta_description, unique=True)
            collector.add_image(client_data.og_image)
            if client_data.json_ld:
                add_json_ld(client_data.json_ld, collector)

        if collector.is_empty():
            return None

        scraped = collector.to_scraped_data(full_page_fetched=True)
        self.logger.info(
            f"Client data ({platform.value}) - caption: {len(scraped.caption_text)} chars, "
            f"stickers: {len(scraped.raw_stickers)}, images: {len(scraped.image_urls)}"
        )
        return scraped

    async def extract_tiktok_data(self, url: str, request_id: Optional[str] = None) -> Optional[ScrapedData]:
        """oEmbed for title/author/thumbnail, then the multi-strategy full page scrape."""
        resolved = await self.resolver.resolve(url, ExtractionSource.TIKTOK, request_id)
        collector = SignalCollector(self.relevance)
        full_page_fetched = False

        oembed = await self.scraper.fetch_oembed(resolved)
        if oembed:
            collector.add_text("Title", oembed.get("title"))
            collector.add_text("Author", oembed.get("author_name"))
            collector.add_image(oembed.get("thumbnail_url"))

        try:
            page = await self.scraper.fetch_tiktok_page(resolved, request_id)
            if page.html:
                self.logger.info(f"Page HTML length: {len(page.html)} (strategy: {page.strategy})")
                full_page_fetched = is_full_page(page.html, settings.full_page_min_bytes)
                extract_tiktok_html(page.html, collector)
        except Exception as e:
            self.logger.warning(f"Page scrape failed: {str(e)}")

        if collector.is_empty():
            return None

        scraped = collector.to_scraped_data(full_page_fetched=full_page_fetched)
        self.logger.info(
            f"Total stickers: {len(scraped.raw_stickers)} | Workout-relevant: {scraped.has_sticker_text}"
        )
        return scraped

    async def extract_instagram_data(self, url: str) -> Optional[ScrapedData]:
        """Meta tags, JSON-LD and hashtags only. Instagram exposes no sticker data."""
        collector = SignalCollector(self.relevance)

        try:
            page_html = await self.scraper.fetch_instagram_page(url)
        except Exception as e:
            self.logger.warning(f"Instagram page extraction failed: {str(e)}")
            return None

        if page_html is None:
            self.logger.warning("Instagram page fetch failed")
            return None

        extract_instagram_html(page_html, collector)
        if collector.is_empty():
            return None

        return collector.to_scraped_data(full_page_fetched=True)
