"""Response models for the Workout Import Service."""
from typing import Any, Optional, List
from pydantic import BaseModel

class ResponseMetadata(BaseModel):
    """Standard response metadata."""
    request_id: str
    api_version: str = "1.0.0"
    timestamp: Optional[str] = None
    processing_time_ms: Optional[int] = None

class ErrorDetails(BaseModel):
    """Detailed error information."""
    url: Optional[str] = None
    platform: Optional[str] = None
    reason: Optional[str] = None

class ErrorInfo(BaseModel):
    """Error information structure."""
    code: str
    message: str
    details: Optional[ErrorDetails] = None

class SuccessResponse(BaseModel):
    """Standard success response."""
    success: bool = True
    data: Any
    metadata: ResponseMetadata

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: ErrorInfo
    metadata: ResponseMetadata

class PlatformFeatures(BaseModel):
    """Platform feature description."""
    name: str
    domain: str
    supported_features: List[str]
    url_patterns: List[str]

class ImportLimits(BaseModel):
    """Limits applied to a single import request."""
    max_frames_per_request: int
    max_cover_images: int
    fast_path_min_stickers: int
    frames_path_min_frames: int

class SupportedPlatformsData(BaseModel):
    """Supported platforms information."""
    platforms: List[PlatformFeatures]
    limits: ImportLimits

class DependencyStatus(BaseModel):
    """Service dependency status."""
    inference: str
    exercise_catalog: str

class HealthMetrics(BaseModel):
    """Service health metrics."""
    uptime_seconds: int
    requests_processed: int
    result_cache_entries: int

class HealthData(BaseModel):
    """Complete health check response."""
    status: str
    timestamp: str
    version: str
    dependencies: DependencyStatus
    metrics: HealthMetrics
