"""Builds the scrape-and-parse request and sends it to the import service."""
import asyncio
from typing import List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from workout_import.core.config import settings
from workout_import.models.extraction import CollectedPageData, ExtractedFrame, ExtractionSource
from workout_import.models.requests import ProcessVideoRequest
from workout_import.models.workout import ProcessResult
from workout_import.utils.logging import CorrelatedLogger

SERVICE_UNREACHABLE = "Something went wrong. Please try again."


class ExtractionRequestBuilder:
    """Turns collector output into a ``ProcessVideoRequest``."""

    @staticmethod
    def build(
        url: str,
        platform: ExtractionSource,
        page_data: Optional[CollectedPageData] = None,
        frames: Optional[List[ExtractedFrame]] = None
    ) -> ProcessVideoRequest:
        """Page data is attached only when it has data, frames only when there are any."""
        return ProcessVideoRequest(
            video_url=url,
            tiktok_url=url,
            platform=platform,
            client_extracted_data=page_data if page_data is not None and page_data.has_data else None,
            video_frames=[frame.data for frame in frames or []]
        )

    @staticmethod
    def to_body(request: ProcessVideoRequest) -> dict:
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not body.get("videoFrames"):
            body.pop("videoFrames", None)
        return body


class ImportServiceClient:
    """HTTP client for ``POST /process``. Never raises; failures come back as results."""

    def __init__(
        self,
        service_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        self.service_url = service_url or settings.import_service_url
        self.api_key = api_key or settings.import_service_api_key
        self.timeout = timeout or settings.import_service_timeout
        self.logger = CorrelatedLogger(__name__)

    async def submit(self, request: ProcessVideoRequest) -> ProcessResult:
        body = ExtractionRequestBuilder.to_body(request)
        platform = request.platform.value if request.platform else "unknown"

        try:
            response = await asyncio.to_thread(
                requests.post,
                self.service_url,
                json=body,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.warning(f"Import service unreachable ({platform}): {str(e)}")
            return ProcessResult.failure(SERVICE_UNREACHABLE)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            error = self._error_message(data) or f"Server error ({response.status_code})"
            self.logger.warning(f"Import service error {response.status_code} ({platform}): {error}")
            return ProcessResult.failure(error)

        try:
            return ProcessResult.model_validate(data)
        except PydanticValidationError as e:
            self.logger.warning(f"Unexpected import service response: {str(e)}")
            return ProcessResult.failure(SERVICE_UNREACHABLE)

    @staticmethod
    def _error_message(data) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        # Envelope errors from the API layer are objects with a message
        if isinstance(error, dict):
            error = error.get("message")
        # Validation details arrive as lists of objects; only text is shown
        for message in (error, data.get("message"), data.get("detail")):
            if isinstance(message, str) and message:
                return message
        return None
