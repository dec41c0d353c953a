"""Request models for the Workout Import Service."""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .extraction import CollectedPageData, ExtractionSource
from .workout import InferredExercise

PLATFORM_VALUES = {source.value for source in ExtractionSource}

class ProcessVideoRequest(BaseModel):
    """Body of a scrape-and-parse request.

    ``tiktokUrl`` is the legacy name of ``videoUrl`` and is still accepted.
    Fields of the wrong shape are dropped instead of rejected, so a sloppy
    client still gets the usual ``success: false`` answer.
    """
    model_config = ConfigDict(populate_by_name=True)

    video_url: Optional[str] = Field(None, alias="videoUrl")
    tiktok_url: Optional[str] = Field(None, alias="tiktokUrl")
    platform: Optional[ExtractionSource] = None
    client_extracted_data: Optional[CollectedPageData] = Field(None, alias="clientExtractedData")
    video_frames: List[str] = Field(default_factory=list, alias="videoFrames")

    @model_validator(mode="before")
    @classmethod
    def drop_malformed_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("videoUrl", "video_url", "tiktokUrl", "tiktok_url"):
            if key in data and not isinstance(data[key], str):
                data[key] = None
        platform = data.get("platform")
        if platform is not None and (not isinstance(platform, str) or platform not in PLATFORM_VALUES):
            data["platform"] = None
        for key in ("clientExtractedData", "client_extracted_data"):
            if key in data and not isinstance(data[key], (dict, CollectedPageData)):
                data[key] = None
        for key in ("videoFrames", "video_frames"):
            if key in data:
                frames = data[key]
                data[key] = [f for f in frames if isinstance(f, str)] if isinstance(frames, list) else []
        return data

    @property
    def url(self) -> Optional[str]:
        return self.video_url or self.tiktok_url

class MatchRequest(BaseModel):
    """Request model for matching inferred exercises against the catalog."""
    exercises: List[InferredExercise]
