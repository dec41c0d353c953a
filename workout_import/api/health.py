"""Health check and monitoring endpoints."""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from workout_import.core.config import settings, PlatformConfig
from workout_import.core.dependencies import get_catalog_dep, get_import_service_dep
from workout_import.models.responses import (
    HealthData, DependencyStatus, HealthMetrics,
    SupportedPlatformsData, PlatformFeatures, ImportLimits
)
from workout_import.services import ExerciseCatalog, ImportService
from workout_import.utils.response_helpers import ResponseHelper

router = APIRouter(tags=["health"])

service_start_time = datetime.now()

@router.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Workout Import Service is running"}

@router.get("/health")
async def health_check(
    import_service: ImportService = Depends(get_import_service_dep),
    catalog: ExerciseCatalog = Depends(get_catalog_dep)
):
    """
    Health check endpoint with dependency status and metrics
    """
    uptime = int((datetime.now() - service_start_time).total_seconds())
    cache_stats = import_service.get_cache_stats()

    dependencies = DependencyStatus(
        inference="healthy" if import_service.router.inference.is_configured else "not_configured",
        exercise_catalog="healthy" if len(catalog) else "empty"
    )

    health_data = HealthData(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.api_version,
        dependencies=dependencies,
        metrics=HealthMetrics(
            uptime_seconds=uptime,
            requests_processed=import_service.requests_processed,
            result_cache_entries=cache_stats["total_items"]
        )
    )

    return JSONResponse(
        status_code=200,
        content=health_data.model_dump()
    )

@router.get("/supported-platforms")
async def get_supported_platforms():
    """
    Get list of supported platforms and their capabilities
    """
    request_id = ResponseHelper.generate_request_id()

    platforms = []
    for platform_name, config in PlatformConfig.SUPPORTED_PLATFORMS.items():
        platforms.append(PlatformFeatures(
            name=platform_name,
            domain=config["domains"][0],  # Primary domain
            supported_features=config["features"],
            url_patterns=config["url_patterns"]
        ))

    platforms_data = SupportedPlatformsData(
        platforms=platforms,
        limits=ImportLimits(
            max_frames_per_request=settings.max_frames_per_request,
            max_cover_images=settings.max_cover_images,
            fast_path_min_stickers=settings.fast_path_min_stickers,
            frames_path_min_frames=settings.frames_path_min_frames
        )
    )

    return ResponseHelper.create_success_response(platforms_data.model_dump(), request_id)
