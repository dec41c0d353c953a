"""Unit tests for the data merger."""
import pytest
from unittest.mock import AsyncMock, Mock

from workout_import.models.extraction import CollectedPageData, ExtractionSource
from workout_import.services.data_merger import DataMerger
from workout_import.services.page_scraper import PageFetchResult

TIKTOK_URL = "https://www.tiktok.com/@coach/video/7301234567890123456"


def video_detail(stickers):
    return {"itemInfo": {"itemStruct": {
        "desc": "Push day",
        "video": {"cover": "https://cdn/cover.jpg"},
        "stickersOnItem": [{"stickerText": s} for s in stickers],
    }}}


class TestDataMerger:
    """Client data first, server scrape as fallback."""

    @pytest.fixture
    def scraper(self):
        scraper = Mock()
        scraper.fetch_oembed = AsyncMock(return_value=None)
        scraper.fetch_tiktok_page = AsyncMock(return_value=PageFetchResult())
        scraper.fetch_instagram_page = AsyncMock(return_value=None)
        return scraper

    @pytest.fixture
    def resolver(self):
        resolver = Mock()
        resolver.resolve = AsyncMock(side_effect=lambda url, platform, request_id=None: url)
        return resolver

    @pytest.fixture
    def merger(self, scraper, resolver):
        return DataMerger(scraper=scraper, resolver=resolver)

    @pytest.mark.asyncio
    async def test_client_data_skips_scrape(self, merger, scraper):
        """Usable client data means no server fetch at all."""
        client = CollectedPageData(
            videoDetail=video_detail(["Bench 4x8"]),
            ogDescription="Push day",
            hasData=True
        )

        scraped = await merger.merge(TIKTOK_URL, ExtractionSource.TIKTOK, client)

        assert scraped.full_page_fetched is True
        assert [s.text for s in scraped.raw_stickers] == ["Bench 4x8"]
        assert "https://cdn/cover.jpg" in scraped.image_urls
        scraper.fetch_tiktok_page.assert_not_called()
        scraper.fetch_oembed.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_data_without_has_data_is_ignored(self, merger, scraper):
        """Test fallback when the client flagged no data."""
        client = CollectedPageData(ogDescription="ignored", hasData=False)

        scraped = await merger.merge(TIKTOK_URL, ExtractionSource.TIKTOK, client)

        assert scraped is None
        scraper.fetch_tiktok_page.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_client_parse_falls_back_to_scrape(self, merger, scraper):
        """Client data that parses to nothing triggers the server scrape."""
        scraper.fetch_oembed.return_value = {
            "title": "Leg day 3x12", "author_name": "coach", "thumbnail_url": "https://cdn/thumb.jpg"
        }
        client = CollectedPageData(hasData=True)

        scraped = await merger.merge(TIKTOK_URL, ExtractionSource.TIKTOK, client)

        assert "Title: Leg day 3x12" in scraped.caption_text
        assert "Author: coach" in scraped.caption_text
        assert scraped.image_urls == ["https://cdn/thumb.jpg"]
        assert scraped.full_page_fetched is False

    @pytest.mark.asyncio
    async def test_tiktok_scrape_marks_full_page(self, merger, scraper):
        """Test full page flag from the scraped HTML."""
        page = (
            '<meta property="og:description" content="Leg day">'
            '<script id="SIGI_STATE">{"ItemModule": {"1": {"desc": "Squats", '
            '"stickersOnItem": [{"text": "Squat 3x12"}]}}}</script>'
        ) + "x" * 10000
        scraper.fetch_tiktok_page.return_value = PageFetchResult(page, "googlebot", True)

        scraped = await merger.merge(TIKTOK_URL, ExtractionSource.TIKTOK)

        assert scraped.full_page_fetched is True
        assert "Video description: Squats" in scraped.caption_text
        assert [s.text for s in scraped.raw_stickers] == ["Squat 3x12"]

    @pytest.mark.asyncio
    async def test_instagram_client_data(self, merger):
        """Instagram client data ignores JSON-LD thumbnails in favour of DOM images."""
        client = CollectedPageData.model_validate({
            "caption": "Upper body: bench 4x8, rows 3x10",
            "ogDescription": "Upper body",
            "imageUrls": ["https://cdninstagram/1.jpg"],
            "jsonLd": {"caption": "Upper body: bench 4x8, rows 3x10", "thumbnailUrl": "https://x/thumb.jpg"},
            "videoSrcUrl": "https://cdninstagram/video.mp4",
            "hasData": True,
        })

        scraped = await merger.merge("https://www.instagram.com/reel/ABC/", ExtractionSource.INSTAGRAM, client)

        assert scraped.caption_text.startswith("Caption: Upper body: bench 4x8, rows 3x10")
        assert scraped.caption_text.count("bench 4x8") == 1
        assert scraped.image_urls == ["https://cdninstagram/1.jpg"]
        assert client.video_play_url == "https://cdninstagram/video.mp4"

    @pytest.mark.asyncio
    async def test_instagram_scrape_failure(self, merger, scraper):
        """A failed Instagram fetch yields nothing."""
        scraper.fetch_instagram_page.side_effect = ConnectionError("blocked")

        assert await merger.merge("https://www.instagram.com/reel/ABC/", ExtractionSource.INSTAGRAM) is None
