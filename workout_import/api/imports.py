"""Import API endpoints."""
from typing import Optional
import uuid

from fastapi import APIRouter, Depends, Query, Security
from fastapi.responses import JSONResponse

from workout_import.core.dependencies import (
    get_catalog_dep, get_exercise_matcher_dep, get_import_service_dep, verify_api_key
)
from workout_import.models.requests import MatchRequest, ProcessVideoRequest
from workout_import.services import ExerciseCatalog, ExerciseMatcher, ImportService, page_cache
from workout_import.utils.response_helpers import ResponseHelper

# Create router
router = APIRouter()


@router.post("/process")
async def process_video(
    request: ProcessVideoRequest,
    api_key: str = Security(verify_api_key),
    import_service: ImportService = Depends(get_import_service_dep)
):
    """Turn a shared video into a list of exercises.

    Handled failures are still HTTP 200 with ``success: false`` and a message the
    client can show as is.
    """
    request_id = str(uuid.uuid4())
    result = await import_service.process(request, request_id)
    return JSONResponse(status_code=200, content=result.to_response())


@router.post("/match")
async def match_exercises(
    request: MatchRequest,
    api_key: str = Security(verify_api_key),
    matcher: ExerciseMatcher = Depends(get_exercise_matcher_dep)
):
    """Match inferred exercises against the bundled catalog."""
    request_id = str(uuid.uuid4())
    matches = matcher.match(request.exercises)
    return ResponseHelper.create_success_response(
        data=[m.model_dump(mode="json", by_alias=True) for m in matches],
        request_id=request_id
    )


@router.get("/catalog/search")
async def search_catalog(
    q: str = Query("", description="Search text; empty returns the whole catalog"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    catalog: ExerciseCatalog = Depends(get_catalog_dep)
):
    """Ranked catalog search."""
    results = catalog.search(q, limit)
    return ResponseHelper.create_success_response(
        data=[e.model_dump(mode="json", by_alias=True) for e in results]
    )


@router.get("/cache/stats")
async def get_cache_stats(
    api_key: str = Security(verify_api_key),
    import_service: ImportService = Depends(get_import_service_dep)
):
    """Get cache statistics."""
    return ResponseHelper.create_success_response(
        data={
            "result_cache": import_service.get_cache_stats(),
            "page_cache": page_cache.get_stats()
        },
        request_id=str(uuid.uuid4())
    )
