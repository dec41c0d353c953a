"""Data models for the Workout Import Service."""
from .extraction import (
    ExtractionSource, CollectedPageData, ExtractedFrame,
    StickerEntry, ScrapedData, DownloadedImage
)
from .workout import (
    ImportPath, InferredExercise, ProcessResult, CatalogExercise,
    MatchResult, TemplateSet, TemplateExercise, WorkoutTemplate
)
from .requests import ProcessVideoRequest, MatchRequest
from .responses import (
    ResponseMetadata, ErrorDetails, ErrorInfo, SuccessResponse, ErrorResponse,
    PlatformFeatures, ImportLimits, SupportedPlatformsData,
    DependencyStatus, HealthMetrics, HealthData
)

__all__ = [
    "ExtractionSource", "CollectedPageData", "ExtractedFrame",
    "StickerEntry", "ScrapedData", "DownloadedImage",
    "ImportPath", "InferredExercise", "ProcessResult", "CatalogExercise",
    "MatchResult", "TemplateSet", "TemplateExercise", "WorkoutTemplate",
    "ProcessVideoRequest", "MatchRequest",
    "ResponseMetadata", "ErrorDetails", "ErrorInfo", "SuccessResponse", "ErrorResponse",
    "PlatformFeatures", "ImportLimits", "SupportedPlatformsData",
    "DependencyStatus", "HealthMetrics", "HealthData"
]
