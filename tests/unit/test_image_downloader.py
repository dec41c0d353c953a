"""Unit tests for cover downloads, client frames and short-link resolution."""
import pytest
from unittest.mock import AsyncMock, patch

from workout_import.models.extraction import DownloadedImage, ExtractionSource
from workout_import.services.image_downloader import (
    ImageDownloader, convert_client_frames, media_type_from_content_type
)
from workout_import.services.url_resolver import URLResolver


class TestImageDownloader:

    @pytest.fixture
    def downloader(self):
        return ImageDownloader()

    def test_to_image_bounds(self, downloader):
        assert downloader.to_image(b"x" * 10, "image/jpeg") is None
        assert downloader.to_image(b"x" * 2_000_000, "image/jpeg") is None

        image = downloader.to_image(b"x" * 5000, "image/webp")
        assert image.media_type == "image/webp"
        assert image.as_data_url().startswith("data:image/webp;base64,")

    @pytest.mark.parametrize("content_type,expected", [
        ("image/png", "image/png"),
        ("IMAGE/WEBP", "image/webp"),
        ("image/gif", "image/gif"),
        (None, "image/jpeg"),
        ("application/octet-stream", "image/jpeg"),
    ])
    def test_media_type(self, content_type, expected):
        assert media_type_from_content_type(content_type) == expected

    @pytest.mark.asyncio
    async def test_duplicates_and_failures(self, downloader):
        async def fake_download(session, url):
            if "dead" in url:
                return None
            return DownloadedImage(data=url)

        urls = [
            "https://cdn/a.jpg", "https://cdn/a.jpg", "https://cdn/dead.jpg",
            "https://cdn/b.jpg", "", "https://cdn/c.jpg", "https://cdn/d.jpg",
        ]
        with patch.object(downloader, "_download_one", side_effect=fake_download):
            images = await downloader.download_covers(urls)

        assert [i.data for i in images] == ["https://cdn/a.jpg", "https://cdn/b.jpg", "https://cdn/c.jpg"]

    @pytest.mark.asyncio
    async def test_limit(self, downloader):
        async def fake_download(session, url):
            return DownloadedImage(data=url)

        with patch.object(downloader, "_download_one", side_effect=fake_download):
            images = await downloader.download_covers(["https://cdn/a.jpg", "https://cdn/b.jpg"], limit=1)

        assert len(images) == 1

    @pytest.mark.asyncio
    async def test_zero_limit_downloads_nothing(self, downloader):
        with patch.object(downloader, "_download_one") as download:
            assert await downloader.download_covers(["https://cdn/a.jpg"], limit=0) == []
        download.assert_not_called()


class TestClientFrames:

    def test_bounds(self):
        frames = ["x" * 10, "y" * 5000, "z" * 600_000, ""]
        converted = convert_client_frames(frames)
        assert [f.data for f in converted] == ["y" * 5000]
        assert converted[0].media_type == "image/jpeg"


class TestURLResolver:

    @pytest.fixture
    def resolver(self):
        return URLResolver()

    @pytest.mark.asyncio
    async def test_canonical_url_untouched(self, resolver):
        url = "https://www.tiktok.com/@coach/video/123"
        with patch.object(resolver, "_follow_redirects", new=AsyncMock()) as follow:
            assert await resolver.resolve(url, ExtractionSource.TIKTOK) == url
        follow.assert_not_called()

    @pytest.mark.asyncio
    async def test_short_link_followed(self, resolver):
        canonical = "https://www.tiktok.com/@coach/video/7301234567890123456"
        with patch.object(resolver, "_follow_redirects", new=AsyncMock(return_value=canonical)):
            assert await resolver.resolve("https://vm.tiktok.com/ZMabc/", ExtractionSource.TIKTOK) == canonical

    @pytest.mark.asyncio
    async def test_redirect_failure_keeps_input(self, resolver):
        short = "https://www.tiktok.com/t/ZTabc/"
        with patch.object(resolver, "_follow_redirects", new=AsyncMock(side_effect=OSError("timeout"))):
            assert await resolver.resolve(short, ExtractionSource.TIKTOK) == short

    @pytest.mark.asyncio
    async def test_instagram_never_resolved(self, resolver):
        url = "https://www.instagram.com/reel/Cxyz123/"
        with patch.object(resolver, "_follow_redirects", new=AsyncMock()) as follow:
            assert await resolver.resolve(url, ExtractionSource.INSTAGRAM) == url
        follow.assert_not_called()
