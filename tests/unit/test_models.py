"""Unit tests for model coercion and serialization."""
import pytest

from workout_import.models.extraction import CollectedPageData, ExtractionSource, StickerEntry
from workout_import.models.requests import ProcessVideoRequest
from workout_import.models.workout import InferredExercise, ProcessResult


class TestInferredExercise:
    """Untrusted inference output is coerced on the way in."""

    def test_defaults(self):
        exercise = InferredExercise.model_validate({"name": "  Squat "})
        assert exercise.name == "Squat"
        assert exercise.sets == 3
        assert exercise.reps == 10
        assert exercise.reps_per_set is None

    def test_string_counts(self):
        exercise = InferredExercise.model_validate({"name": "Squat", "sets": "4", "reps": "12 reps"})
        assert exercise.sets == 4
        assert exercise.reps == 12

    @pytest.mark.parametrize("reps,expected", [
        ("8-12", 12),
        ("15", 15),
        (0, 10),
        (-3, 10),
        (None, 10),
        (True, 10),
        (7.0, 7),
    ])
    def test_reps_coercion(self, reps, expected):
        assert InferredExercise.model_validate({"name": "Curl", "reps": reps}).reps == expected

    def test_reps_per_set_wins(self):
        exercise = InferredExercise.model_validate(
            {"name": "Bench", "sets": 5, "reps": 3, "repsPerSet": [12, "10", 8, 6]}
        )
        assert exercise.reps_per_set == [12, 10, 8, 6]
        assert exercise.sets == 4
        assert exercise.reps == 12

    def test_comma_reps_become_pyramid(self):
        exercise = InferredExercise.model_validate({"name": "Bench", "reps": "10, 8, 6"})
        assert exercise.reps_per_set == [10, 8, 6]
        assert exercise.sets == 3
        assert exercise.reps == 10

    def test_blank_optional_text(self):
        exercise = InferredExercise.model_validate({"name": "Row", "weight": " ", "notes": "slow"})
        assert exercise.weight is None
        assert exercise.notes == "slow"


class TestProcessResult:

    def test_failure_shape(self):
        assert ProcessResult.failure("nope").to_response() == {
            "success": False,
            "error": "nope",
            "confidence": 0.0
        }

    def test_success_is_camel_case(self):
        result = ProcessResult(
            success=True,
            workout_name="Push",
            exercises=[InferredExercise(name="Bench", repsPerSet=[10, 8])],
            confidence=0.8,
            cached=True
        )
        body = result.to_response()
        assert body["workoutName"] == "Push"
        assert body["cached"] is True
        assert body["exercises"][0]["repsPerSet"] == [10, 8]


class TestRequestModels:

    def test_video_url_preferred_over_legacy_field(self):
        request = ProcessVideoRequest(videoUrl="https://a", tiktokUrl="https://b")
        assert request.url == "https://a"

    def test_collected_page_data_aliases(self):
        data = CollectedPageData.model_validate({
            "videoSrcUrl": "https://cdn/v.mp4",
            "hasData": True,
            "unknownField": 1
        })
        assert data.video_play_url == "https://cdn/v.mp4"
        assert data.has_data is True

    def test_sticker_count(self):
        data = CollectedPageData(videoDetail={"itemInfo": {"itemStruct": {"stickersOnItem": [{}, {}]}}})
        assert data.sticker_count() == 2
        assert CollectedPageData(videoDetail={"itemInfo": None}).sticker_count() == 0

    def test_platform_display_name(self):
        assert ExtractionSource.INSTAGRAM.display_name == "Instagram Reel"
        assert ExtractionSource.TIKTOK.display_name == "TikTok"

    @pytest.mark.parametrize("entry,line", [
        (StickerEntry(text="Squat 3x12", start_time=1.5, end_time=4), '[1.5s - 4s] "Squat 3x12"'),
        (StickerEntry(text="Squat", start_time=2), '[2s] "Squat"'),
        (StickerEntry(text="Squat"), '"Squat"'),
    ])
    def test_sticker_line(self, entry, line):
        assert entry.format_line() == line


class TestMalformedRequestFields:
    """Wrong-shaped fields fall back to their defaults."""

    @pytest.mark.parametrize("body", [
        {"videoUrl": 12345},
        {"videoUrl": ["https://www.tiktok.com/@a/video/1"]},
        {"tiktokUrl": {"href": "https://www.tiktok.com/@a/video/1"}},
    ])
    def test_non_text_url(self, body):
        assert ProcessVideoRequest.model_validate(body).url is None

    @pytest.mark.parametrize("platform", ["platform_a", 3, ["tiktok"], "TikTok"])
    def test_unknown_platform(self, platform):
        request = ProcessVideoRequest.model_validate({"videoUrl": "https://a", "platform": platform})
        assert request.platform is None

    def test_known_platform_kept(self):
        request = ProcessVideoRequest.model_validate({"platform": "instagram"})
        assert request.platform == ExtractionSource.INSTAGRAM

    @pytest.mark.parametrize("frames,expected", [
        (None, []),
        ("abc", []),
        ({"0": "abc"}, []),
        (["abc", None, 1, "def"], ["abc", "def"]),
    ])
    def test_frames(self, frames, expected):
        assert ProcessVideoRequest.model_validate({"videoFrames": frames}).video_frames == expected

    @pytest.mark.parametrize("page", ["caption", 5, ["x"]])
    def test_non_object_page_data(self, page):
        assert ProcessVideoRequest.model_validate({"clientExtractedData": page}).client_extracted_data is None

    def test_page_data_fields(self):
        data = CollectedPageData.model_validate({
            "videoDetail": "oops",
            "caption": 42,
            "ogTitle": "Leg day",
            "imageUrls": ["https://cdn/a.jpg", None, 3],
            "videoSrcUrl": {"src": "x"},
            "videoDuration": "long",
            "hasData": "yes"
        })
        assert data.video_detail is None
        assert data.caption is None
        assert data.og_title == "Leg day"
        assert data.image_urls == ["https://cdn/a.jpg"]
        assert data.video_play_url is None
        assert data.video_duration is None
        assert data.has_data is False

    def test_null_image_urls(self):
        assert CollectedPageData.model_validate({"imageUrls": None}).image_urls == []
