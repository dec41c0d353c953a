"""Signal extraction from raw page HTML and platform hydration payloads."""
import html
import json
import re
from typing import Any, Dict, List, Optional

from workout_import.models.extraction import ScrapedData, StickerEntry
from workout_import.services.sticker_parser import (
    WorkoutRelevance, default_relevance, format_sticker_text, parse_stickers
)
from workout_import.utils.logging import CorrelatedLogger

logger = CorrelatedLogger(__name__)

HYDRATION_MARKERS = ["__UNIVERSAL_DATA_FOR_REHYDRATION__", "SIGI_STATE", "__DEFAULT_SCOPE__"]
EMBED_MARKERS = ["__UNIVERSAL_DATA_FOR_REHYDRATION__", "SIGI_STATE", "video-detail"]
VIDEO_DETAIL_KEYS = ["webapp.video-detail", "webapp.video-detail-non-ssr"]
COVER_FIELDS = ["originCover", "cover", "reflowCover"]
HASHTAG_STOPWORDS = {"script", "style", "html", "head", "body", "div", "span", "class"}

UNIVERSAL_DATA_RE = re.compile(
    r'<script\s+id="__UNIVERSAL_DATA_FOR_REHYDRATION__"[^>]*>([\s\S]*?)</script>', re.IGNORECASE
)
SIGI_STATE_RE = re.compile(r'<script\s+id="SIGI_STATE"[^>]*>([\s\S]*?)</script>', re.IGNORECASE)
JSON_LD_RE = re.compile(r'<script\s+type="application/ld\+json"[^>]*>([\s\S]*?)</script>', re.IGNORECASE)
HASHTAG_RE = re.compile(r"#(\w{2,30})")


class SignalCollector:
    """Accumulates caption lines, image URLs and stickers from several sources."""

    def __init__(self, relevance: Optional[WorkoutRelevance] = None):
        self.text_parts: List[str] = []
        self.image_urls: List[str] = []
        self.stickers: List[StickerEntry] = []
        self.relevance = relevance or default_relevance

    def add_text(self, label: str, text: Any, unique: bool = False) -> None:
        """Add a labelled caption line. With ``unique`` the text is skipped if already present."""
        if not text or not isinstance(text, str):
            return
        if unique and any(text in part for part in self.text_parts):
            return
        self.text_parts.append(f"{label}: {text}")

    def add_block(self, block: Optional[str]) -> None:
        if block:
            self.text_parts.append(block)

    def add_image(self, url: Any) -> None:
        if url and isinstance(url, str) and url not in self.image_urls:
            self.image_urls.append(url)

    def add_images(self, urls: Any) -> None:
        for url in urls if isinstance(urls, list) else [urls]:
            self.add_image(url)

    def is_empty(self) -> bool:
        return not self.text_parts and not self.image_urls and not self.stickers

    def to_scraped_data(self, full_page_fetched: bool) -> ScrapedData:
        has_sticker_text = bool(self.stickers) and self.relevance.stickers_relevant(self.stickers)
        return ScrapedData(
            caption_text="\n".join(self.text_parts),
            sticker_text=format_sticker_text(self.stickers),
            raw_stickers=list(self.stickers),
            image_urls=list(self.image_urls),
            has_sticker_text=has_sticker_text,
            full_page_fetched=full_page_fetched
        )


def is_full_page(page_html: str, min_bytes: int) -> bool:
    """A genuine page is large and carries at least one hydration marker."""
    if len(page_html) < min_bytes:
        return False
    return any(marker in page_html for marker in HYDRATION_MARKERS)


def is_full_embed_page(page_html: str, min_bytes: int) -> bool:
    if len(page_html) <= min_bytes:
        return False
    return any(marker in page_html for marker in EMBED_MARKERS)


def extract_meta(page_html: str, key: str) -> Optional[str]:
    """Read a ``<meta property|name="key" content="...">`` value."""
    pattern = re.compile(
        r'<meta\s+(?:property|name)="' + re.escape(key) + r'"\s+content="([^"]*)"', re.IGNORECASE
    )
    match = pattern.search(page_html)
    if match and match.group(1):
        return html.unescape(match.group(1))
    return None


def extract_script_json(page_html: str, pattern: re.Pattern) -> Optional[Any]:
    match = pattern.search(page_html)
    if not match or not match.group(1):
        return None
    try:
        return json.loads(match.group(1))
    except ValueError as e:
        logger.warning(f"Embedded JSON parse failed: {str(e)}")
        return None


def extract_hashtags(page_html: str) -> Optional[str]:
    tags = []
    for match in HASHTAG_RE.finditer(page_html):
        tag = match.group(1).lower()
        if tag not in HASHTAG_STOPWORDS and tag not in tags:
            tags.append(tag)
    if not tags:
        return None
    return " ".join(f"#{tag}" for tag in tags)


def extract_from_item(item: Dict[str, Any], collector: SignalCollector, legacy: bool = False) -> Optional[str]:
    """Pull description, covers, stickers and tags from one video item.

    Legacy ``SIGI_STATE`` items only carry description, hashtag names, two cover
    fields and stickers.
    """
    parts: List[str] = []

    if item.get("desc"):
        parts.append(f"Video description: {item['desc']}")

    video = item.get("video")
    if isinstance(video, dict):
        for field in COVER_FIELDS[:2] if legacy else COVER_FIELDS:
            collector.add_image(video.get(field))

    collector.stickers.extend(parse_stickers(item))

    text_extra = item.get("textExtra")
    if isinstance(text_extra, list):
        if legacy:
            tags = [t.get("hashtagName") for t in text_extra if isinstance(t, dict)]
        else:
            tags = [t.get("hashtagName") or t.get("text") for t in text_extra if isinstance(t, dict)]
        tags = [t for t in tags if t]
        if tags:
            parts.append(f"{'Tags' if legacy else 'Text tags'}: {', '.join(tags)}")

    if legacy:
        return "\n".join(parts) if parts else None

    subtitles = item.get("subtitleInfos")
    if isinstance(subtitles, list) and any(isinstance(s, dict) and s.get("Url") for s in subtitles):
        parts.append("[Has subtitles]")

    challenges = item.get("challenges")
    if isinstance(challenges, list):
        titles = [c.get("title") for c in challenges if isinstance(c, dict) and c.get("title")]
        if titles:
            parts.append(f"Challenges: {', '.join(titles)}")

    suggested = item.get("suggestedWords")
    if isinstance(suggested, list) and suggested:
        parts.append(f"Suggested: {', '.join(str(w) for w in suggested)}")

    # Slideshow posts carry their pictures here
    image_post = item.get("imagePost")
    if isinstance(image_post, dict):
        for image in image_post.get("images") or []:
            url_list = ((image or {}).get("imageURL") or {}).get("urlList") or []
            if url_list:
                collector.add_image(url_list[0])

    return "\n".join(parts) if parts else None


def extract_from_video_detail(video_detail: Dict[str, Any], collector: SignalCollector) -> Optional[str]:
    try:
        item = video_detail["itemInfo"]["itemStruct"]
    except (KeyError, TypeError):
        return None
    if not isinstance(item, dict):
        return None
    logger.debug(f"itemStruct keys: {', '.join(item.keys())}")
    return extract_from_item(item, collector)


def extract_from_universal_data(data: Dict[str, Any], collector: SignalCollector) -> Optional[str]:
    """Read the modern ``__UNIVERSAL_DATA_FOR_REHYDRATION__`` payload."""
    scope = data.get("__DEFAULT_SCOPE__") if isinstance(data, dict) else None
    if not isinstance(scope, dict):
        return None
    for key in VIDEO_DETAIL_KEYS:
        if scope.get(key):
            return extract_from_video_detail(scope[key], collector)
    return None


def extract_from_item_module(item_module: Dict[str, Any], collector: SignalCollector) -> Optional[str]:
    """Read the legacy ``SIGI_STATE`` item map (video ID -> item)."""
    if not isinstance(item_module, dict):
        return None
    blocks = []
    for item in item_module.values():
        if isinstance(item, dict):
            block = extract_from_item(item, collector, legacy=True)
            if block:
                blocks.append(block)
    return "\n".join(blocks) if blocks else None


def add_json_ld(json_ld: Any, collector: SignalCollector, include_name: bool = False) -> None:
    if not isinstance(json_ld, dict):
        return
    collector.add_text("Structured caption", json_ld.get("caption"), unique=True)
    collector.add_text("Structured data", json_ld.get("description"), unique=True)
    collector.add_text("Article body", json_ld.get("articleBody"), unique=True)
    if include_name:
        collector.add_text("Video name", json_ld.get("name"), unique=True)
        keywords = json_ld.get("keywords")
        if keywords:
            collector.add_text("Keywords", ", ".join(keywords) if isinstance(keywords, list) else str(keywords))
    if json_ld.get("thumbnailUrl"):
        collector.add_images(json_ld["thumbnailUrl"])


def extract_tiktok_html(page_html: str, collector: SignalCollector) -> None:
    """Collect every TikTok signal available in a fetched page."""
    collector.add_image(extract_meta(page_html, "og:image"))
    collector.add_text("Description", extract_meta(page_html, "og:description"))
    collector.add_text("Meta description", extract_meta(page_html, "description"), unique=True)

    universal = extract_script_json(page_html, UNIVERSAL_DATA_RE)
    if universal:
        collector.add_block(extract_from_universal_data(universal, collector))

    sigi = extract_script_json(page_html, SIGI_STATE_RE)
    if isinstance(sigi, dict):
        collector.add_block(extract_from_item_module(sigi.get("ItemModule"), collector))

    add_json_ld(extract_script_json(page_html, JSON_LD_RE), collector, include_name=True)

    hashtags = extract_hashtags(page_html)
    if hashtags:
        collector.add_text("Hashtags", hashtags)


def extract_instagram_html(page_html: str, collector: SignalCollector) -> None:
    """Collect Instagram signals: meta tags, JSON-LD and hashtags only."""
    collector.add_text("Description", extract_meta(page_html, "og:description"))
    collector.add_text("Title", extract_meta(page_html, "og:title"))
    collector.add_image(extract_meta(page_html, "og:image"))
    collector.add_text("Meta description", extract_meta(page_html, "description"), unique=True)

    add_json_ld(extract_script_json(page_html, JSON_LD_RE), collector)

    hashtags = extract_hashtags(page_html)
    if hashtags:
        collector.add_text("Hashtags", hashtags)
