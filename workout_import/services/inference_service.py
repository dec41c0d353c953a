"""Workout extraction using the OpenAI chat completions API."""
import asyncio
from datetime import datetime
from typing import List, Optional, Sequence

from openai import OpenAI

from workout_import.config.schemas import InferenceValidationError, get_response_validator
from workout_import.config.templates import get_template_engine
from workout_import.core.config import settings
from workout_import.core.exceptions import ConfigurationError
from workout_import.models.extraction import DownloadedImage, ExtractionSource, ScrapedData
from workout_import.models.workout import ProcessResult
from workout_import.utils.logging import CorrelatedLogger

NOT_CONFIGURED = "AI service not configured"
INFERENCE_FAILED = "AI processing failed"
NOT_A_WORKOUT = "This video does not appear to contain a workout"
UNPARSABLE = "Could not parse workout data"
NO_EXERCISES = "Could not find any exercises in this video. Try a different workout video."


def parse_inference_response(content: str, min_confidence: Optional[float] = None) -> ProcessResult:
    """Turn raw model output into a ProcessResult.

    Never raises: unreadable output, a non-workout verdict and an empty exercise list
    each map to their own failure message.
    """
    min_confidence = settings.min_workout_confidence if min_confidence is None else min_confidence

    try:
        response = get_response_validator().validate_response(content)
    except InferenceValidationError:
        return ProcessResult.failure(UNPARSABLE)

    # A missing confidence is not a low one
    low_confidence = response.confidence is not None and response.confidence < min_confidence
    if not response.is_workout or low_confidence:
        return ProcessResult.failure(NOT_A_WORKOUT, confidence=response.confidence or 0.0)

    if not response.exercises:
        return ProcessResult.failure(NO_EXERCISES, confidence=response.effective_confidence)

    return ProcessResult(
        success=True,
        workout_name=response.effective_workout_name,
        exercises=response.exercises,
        confidence=response.effective_confidence
    )


class WorkoutInferenceService:
    """Service for extracting exercises from page signals and images."""

    def __init__(self, client: Optional[OpenAI] = None):
        self.client = client or self._initialize_client()
        self.logger = CorrelatedLogger(__name__)
        self.template_engine = get_template_engine()

    def _initialize_client(self) -> Optional[OpenAI]:
        """Initialize OpenAI client if API key is configured."""
        if not settings.openai_api_key:
            return None

        try:
            return OpenAI(api_key=settings.openai_api_key)
        except Exception as e:
            raise ConfigurationError("OpenAI client", str(e))

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def complete(self, prompt: str, images: Sequence[DownloadedImage] = ()) -> str:
        """Send one prompt with optional images and return the raw text answer."""
        model = settings.vision_model if images else settings.text_model

        response = await asyncio.to_thread(
            self.client.chat.completions.create,
            model=model,
            messages=self._create_messages(prompt, images),
            max_tokens=settings.inference_max_tokens,
            temperature=0.1
        )
        return response.choices[0].message.content or ""

    async def infer_fast(
        self,
        scraped: ScrapedData,
        platform: ExtractionSource,
        request_id: Optional[str] = None
    ) -> ProcessResult:
        """Text-only inference from stickers and caption."""
        return await self._infer("fast", scraped, platform, [], request_id)

    async def infer_frames(
        self,
        scraped: ScrapedData,
        platform: ExtractionSource,
        frames: Sequence[DownloadedImage],
        covers: Sequence[DownloadedImage],
        request_id: Optional[str] = None
    ) -> ProcessResult:
        """Vision inference over sampled frames, with up to two covers as supplement."""
        frames = list(frames)[:settings.max_frames_per_request]
        covers = list(covers)[:settings.max_covers_with_frames]
        return await self._infer(
            "frames", scraped, platform, frames + covers, request_id,
            frame_count=len(frames), cover_count=len(covers)
        )

    async def infer_unified(
        self,
        scraped: ScrapedData,
        platform: ExtractionSource,
        covers: Sequence[DownloadedImage],
        request_id: Optional[str] = None
    ) -> ProcessResult:
        """Combined inference over stickers, caption and cover images."""
        covers = list(covers)
        return await self._infer(
            "unified", scraped, platform, covers, request_id, cover_count=len(covers)
        )

    async def _infer(
        self,
        prompt_type: str,
        scraped: ScrapedData,
        platform: ExtractionSource,
        images: List[DownloadedImage],
        request_id: Optional[str],
        frame_count: int = 0,
        cover_count: int = 0
    ) -> ProcessResult:
        if request_id:
            self.logger.request_id = request_id

        if not self.client:
            self.logger.error("OPENAI_API_KEY not set")
            return ProcessResult.failure(NOT_CONFIGURED)

        prompt = self.template_engine.render_prompt(
            prompt_type,
            platform_name=platform.display_name,
            sticker_text=scraped.sticker_text,
            caption_text=scraped.caption_text,
            frame_count=frame_count,
            cover_count=cover_count
        )

        start_time = datetime.now()
        self.logger.info(f"Calling inference ({prompt_type}) with {len(images)} images")

        try:
            content = await self.complete(prompt, images)
        except Exception as e:
            self.logger.error(f"Inference API error: {str(e)}")
            return ProcessResult.failure(INFERENCE_FAILED)

        processing_time = int((datetime.now() - start_time).total_seconds() * 1000)
        self.logger.info(f"Inference ({prompt_type}) answered in {processing_time}ms: {content[:300]}")

        result = parse_inference_response(content)
        if not result.success:
            self.logger.warning(f"Inference ({prompt_type}) rejected: {result.error}")
        return result

    def _create_messages(self, prompt: str, images: Sequence[DownloadedImage]) -> list:
        """Images first in their given order, then the text prompt."""
        if not images:
            return [{"role": "user", "content": prompt}]

        content = [
            {
                "type": "image_url",
                "image_url": {
                    "url": image.as_data_url(),
                    "detail": "high"
                }
            }
            for image in images
        ]
        content.append({"type": "text", "text": prompt})
        return [{"role": "user", "content": content}]
