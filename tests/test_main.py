"""Basic tests for the application endpoints."""
import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.testclient import TestClient

from workout_import.main import app
from workout_import.core.config import settings
from workout_import.core.dependencies import get_import_service_dep
from workout_import.models.workout import ImportPath, InferredExercise, ProcessResult
from workout_import.services.import_service import INVALID_REQUEST

API_HEADERS = {"x-api-key": settings.api_key}

@pytest.fixture
def client():
    """Test client fixture."""
    return TestClient(app)

@pytest.fixture
def fake_import_service():
    """Replace the import service for the duration of a test."""
    service = Mock()
    service.process = AsyncMock()
    service.requests_processed = 0
    service.get_cache_stats.return_value = {"name": "result", "total_items": 0}
    app.dependency_overrides[get_import_service_dep] = lambda: service
    yield service
    app.dependency_overrides.clear()

def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "Workout Import Service is running"

def test_health_endpoint(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["dependencies"]["exercise_catalog"] == "healthy"
    assert "requests_processed" in data["metrics"]
    assert "result_cache_entries" in data["metrics"]

def test_supported_platforms_endpoint(client):
    """Test supported platforms endpoint."""
    response = client.get("/supported-platforms")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    names = [p["name"] for p in data["data"]["platforms"]]
    assert names == ["tiktok", "instagram"]
    assert data["data"]["limits"]["fast_path_min_stickers"] == settings.fast_path_min_stickers

def test_process_without_api_key(client):
    """Missing API key is rejected before any processing."""
    response = client.post("/process", json={
        "videoUrl": "https://www.tiktok.com/@test/video/123456789"
    })
    assert response.status_code in (401, 403)

def test_process_with_invalid_api_key(client):
    """Test process endpoint with invalid API key should fail."""
    response = client.post("/process", json={
        "videoUrl": "https://www.tiktok.com/@test/video/123456789"
    }, headers={"x-api-key": "invalid-key"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "API_KEY_INVALID"

def test_process_returns_camel_case_result(client, fake_import_service):
    """Successful results come back as the bare camelCase payload without nulls."""
    fake_import_service.process.return_value = ProcessResult(
        success=True,
        workout_name="Leg Day",
        exercises=[InferredExercise(name="Squat", sets=4, reps=8)],
        confidence=0.9,
        path=ImportPath.FAST
    )

    response = client.post("/process", json={
        "videoUrl": "https://www.tiktok.com/@test/video/123456789",
        "platform": "tiktok"
    }, headers=API_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["workoutName"] == "Leg Day"
    assert data["path"] == "fast"
    assert data["exercises"][0] == {"name": "Squat", "sets": 4, "reps": 8}
    assert "error" not in data
    assert "cached" not in data

    sent = fake_import_service.process.call_args[0][0]
    assert sent.url == "https://www.tiktok.com/@test/video/123456789"

def test_process_handled_failure_is_http_200(client, fake_import_service):
    """Handled failures are reported in the body, not the status code."""
    fake_import_service.process.return_value = ProcessResult.failure(
        "Unable to read this video right now. Please try again in a minute."
    )

    response = client.post("/process", json={
        "tiktokUrl": "https://www.tiktok.com/@test/video/123456789"
    }, headers=API_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "error": "Unable to read this video right now. Please try again in a minute.",
        "confidence": 0.0
    }

def test_match_endpoint(client):
    """Matching runs against the bundled catalog and keeps input order."""
    response = client.post("/match", json={
        "exercises": [
            {"name": "Romanian Deadlift", "sets": 3, "reps": 10},
            {"name": "Bulgarian Split Squat", "sets": 3, "reps": 12}
        ]
    }, headers=API_HEADERS)

    assert response.status_code == 200
    matches = response.json()["data"]
    assert [m["aiName"] for m in matches] == ["Romanian Deadlift", "Bulgarian Split Squat"]
    assert matches[0]["matched"] is True
    assert matches[0]["confidence"] == 1.0
    assert matches[1]["matched"] is False
    assert matches[1]["sets"] == 3
    assert matches[1]["reps"] == 12

def test_catalog_search_endpoint(client):
    """Catalog search returns ranked entries up to the limit."""
    response = client.get("/catalog/search", params={"q": "squat", "limit": 3})
    assert response.status_code == 200
    results = response.json()["data"]
    assert 1 <= len(results) <= 3
    # Equal scores fall back to alphabetical order
    assert results[0]["name"] == "Barbell Back Squat"

def test_cache_stats_endpoint(client, fake_import_service):
    """Test cache statistics endpoint."""
    response = client.get("/cache/stats", headers=API_HEADERS)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["result_cache"]["name"] == "result"
    assert data["page_cache"]["name"] == "page"

def test_health_reports_unconfigured_inference(client, fake_import_service):
    """Without a model key the inference dependency is flagged."""
    fake_import_service.router.inference.is_configured = False

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["dependencies"]["inference"] == "not_configured"

def test_process_null_frames_are_ignored(client, fake_import_service):
    """A null frame list is treated as no frames."""
    fake_import_service.process.return_value = ProcessResult.failure("No workout found")

    response = client.post("/process", json={
        "videoUrl": "https://www.instagram.com/reel/Cxyz123/",
        "videoFrames": None
    }, headers=API_HEADERS)

    assert response.status_code == 200
    sent = fake_import_service.process.call_args[0][0]
    assert sent.video_frames == []
    assert sent.url == "https://www.instagram.com/reel/Cxyz123/"

def test_process_unknown_platform_is_detected_from_url(client, fake_import_service):
    """An unrecognised platform hint is dropped rather than rejected."""
    fake_import_service.process.return_value = ProcessResult.failure("No workout found")

    response = client.post("/process", json={
        "videoUrl": "https://www.tiktok.com/@test/video/123456789",
        "platform": "platform_a",
        "videoFrames": ["abc", 7, None]
    }, headers=API_HEADERS)

    assert response.status_code == 200
    sent = fake_import_service.process.call_args[0][0]
    assert sent.platform is None
    assert sent.video_frames == ["abc"]

def test_process_non_text_url_is_missing_url(client):
    """A numeric URL gets the same answer as no URL at all."""
    response = client.post("/process", json={"videoUrl": 12345}, headers=API_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Missing video URL", "confidence": 0.0}

def test_process_null_image_urls_keep_page_data(client, fake_import_service):
    """Bad fields inside the page snapshot don't throw the snapshot away."""
    fake_import_service.process.return_value = ProcessResult.failure("No workout found")

    response = client.post("/process", json={
        "videoUrl": "https://www.instagram.com/reel/Cxyz123/",
        "clientExtractedData": {"caption": "leg day", "imageUrls": None, "hasData": True}
    }, headers=API_HEADERS)

    assert response.status_code == 200
    page = fake_import_service.process.call_args[0][0].client_extracted_data
    assert page.caption == "leg day"
    assert page.image_urls == []
    assert page.has_data is True

def test_process_unreadable_body_is_failure_result(client, fake_import_service):
    """A body that is not an object still answers with the result shape."""
    response = client.post("/process", json=["https://www.tiktok.com/@test/video/1"], headers=API_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": INVALID_REQUEST, "confidence": 0.0}
    fake_import_service.process.assert_not_called()

def test_match_bad_body_keeps_validation_status(client):
    """Other endpoints keep the framework's validation response."""
    response = client.post("/match", json={"exercises": "squat"}, headers=API_HEADERS)
    assert response.status_code == 422
