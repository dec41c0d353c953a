"""Extraction-related data models."""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class ExtractionSource(str, Enum):
    """Platform a shared video comes from."""
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"

    @property
    def display_name(self) -> str:
        return "Instagram Reel" if self is ExtractionSource.INSTAGRAM else "TikTok"


_OBJECT_KEYS = {"videoDetail", "video_detail", "itemModule", "item_module", "jsonLd", "json_ld"}
_TEXT_KEYS = {
    "caption", "ogDescription", "og_description", "ogTitle", "og_title",
    "metaDescription", "meta_description", "pageTitle", "page_title",
    "ogImage", "og_image", "videoPlayUrl", "videoSrcUrl", "video_play_url",
}
_IMAGE_URL_KEYS = {"imageUrls", "image_urls"}
_DURATION_KEYS = {"videoDuration", "video_duration"}
_HAS_DATA_KEYS = {"hasData", "has_data"}


class CollectedPageData(BaseModel):
    """Snapshot of a video page as observed by the collector's page script."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    video_detail: Optional[Dict[str, Any]] = Field(None, alias="videoDetail")
    item_module: Optional[Dict[str, Any]] = Field(None, alias="itemModule")
    caption: Optional[str] = None
    og_description: Optional[str] = Field(None, alias="ogDescription")
    og_title: Optional[str] = Field(None, alias="ogTitle")
    meta_description: Optional[str] = Field(None, alias="metaDescription")
    page_title: Optional[str] = Field(None, alias="pageTitle")
    og_image: Optional[str] = Field(None, alias="ogImage")
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    json_ld: Optional[Dict[str, Any]] = Field(None, alias="jsonLd")
    video_play_url: Optional[str] = Field(
        None,
        alias="videoPlayUrl",
        validation_alias=AliasChoices("videoPlayUrl", "videoSrcUrl", "video_play_url"),
    )
    video_duration: Optional[float] = Field(None, alias="videoDuration")
    has_data: bool = Field(False, alias="hasData")

    @model_validator(mode="before")
    @classmethod
    def drop_malformed_fields(cls, data: Any) -> Any:
        """Page scripts run against markup we don't control; keep what has the right shape."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, value in data.items():
            if key in _OBJECT_KEYS and not isinstance(value, dict):
                data[key] = None
            elif key in _TEXT_KEYS and not isinstance(value, str):
                data[key] = None
            elif key in _IMAGE_URL_KEYS:
                data[key] = [u for u in value if isinstance(u, str)] if isinstance(value, list) else []
            elif key in _DURATION_KEYS and (isinstance(value, bool) or not isinstance(value, (int, float))):
                data[key] = None
            elif key in _HAS_DATA_KEYS and not isinstance(value, (bool, int)):
                data[key] = False
        return data

    @property
    def has_rich_payload(self) -> bool:
        """True when the page exposed a hydration detail object or a legacy item map."""
        return bool(self.video_detail or self.item_module)

    def sticker_count(self) -> int:
        """Number of stickers visible in the hydration detail, if any."""
        try:
            stickers = self.video_detail["itemInfo"]["itemStruct"].get("stickersOnItem") or []
        except (TypeError, KeyError, AttributeError):
            return 0
        return len(stickers) if isinstance(stickers, list) else 0


class ExtractedFrame(BaseModel):
    """A still image sampled from the source video."""
    data: str = Field(..., description="Base64-encoded image payload")
    media_type: str = "image/jpeg"
    timestamp_ms: int = Field(..., description="Position in the clip the frame was taken at")


class StickerEntry(BaseModel):
    """A time-stamped on-screen text overlay."""
    text: str
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    raw_data: Any = None

    def format_line(self) -> str:
        """Render as one transcript line, e.g. ``[1.5s - 4s] "Squat 3x12"``."""
        if self.start_time is not None:
            if self.end_time is not None:
                prefix = f"[{_fmt_seconds(self.start_time)}s - {_fmt_seconds(self.end_time)}s] "
            else:
                prefix = f"[{_fmt_seconds(self.start_time)}s] "
        else:
            prefix = ""
        return f'{prefix}"{self.text}"'


class ScrapedData(BaseModel):
    """Merged view of client-supplied and server-scraped page signals."""
    caption_text: str = ""
    sticker_text: str = ""
    raw_stickers: List[StickerEntry] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    has_sticker_text: bool = False
    full_page_fetched: bool = False


class DownloadedImage(BaseModel):
    """An image ready to be sent to the inference service."""
    data: str = Field(..., description="Base64-encoded image payload")
    media_type: str = "image/jpeg"

    def as_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def _fmt_seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
