"""Custom exceptions for the Workout Import Service.

Every ``message`` here is safe to show to an end user; diagnostic detail goes into
``details`` and the logs.
"""
from typing import Optional

class WorkoutImportBaseException(Exception):
    """Base exception for the workout import service."""

    def __init__(self, message: str, error_code: str, details: Optional[dict] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

class ValidationError(WorkoutImportBaseException):
    """Exception raised for input validation errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, "VALIDATION_ERROR", details)

class UnsupportedPlatformError(WorkoutImportBaseException):
    """Exception raised when the URL is not a TikTok or Instagram link."""

    def __init__(self, url: str, platform: str = "unknown"):
        message = "Not a valid TikTok or Instagram URL"
        details = {"url": url, "platform": platform}
        super().__init__(message, "UNSUPPORTED_PLATFORM", details)

class ExtractionFailedError(WorkoutImportBaseException):
    """Exception raised when no page data could be obtained at all."""

    def __init__(self, url: str, reason: str = "No data extracted"):
        message = "Could not extract video content. The video may be private or unavailable."
        details = {"url": url, "reason": reason}
        super().__init__(message, "EXTRACTION_FAILED", details)

class NoSignalError(WorkoutImportBaseException):
    """Exception raised when there are no stickers, caption, images or frames to infer from."""

    def __init__(self, url: str):
        message = "Unable to read this video right now. Please try again in a minute."
        details = {"url": url, "reason": "no stickers, caption, images or frames"}
        super().__init__(message, "NO_SIGNAL", details)

class NoExtractableDataError(WorkoutImportBaseException):
    """Exception raised on the collector side when a page yields nothing at all."""

    def __init__(self, url: str):
        message = "Could not read anything from this video. Try sharing it again."
        details = {"url": url}
        super().__init__(message, "NO_EXTRACTABLE_DATA", details)

class NoMatchedExercisesError(WorkoutImportBaseException):
    """Exception raised when a template is requested but no exercise was matched."""

    def __init__(self):
        message = "None of the exercises could be matched to the library. Try editing the exercise names."
        super().__init__(message, "NO_MATCHED_EXERCISES")

class APIKeyInvalidError(WorkoutImportBaseException):
    """Exception raised for invalid API key."""

    def __init__(self):
        message = "Invalid or missing API key"
        super().__init__(message, "API_KEY_INVALID")

class ConfigurationError(WorkoutImportBaseException):
    """Exception raised for configuration errors."""

    def __init__(self, setting: str, reason: str):
        message = f"Configuration error for {setting}: {reason}"
        details = {"setting": setting, "reason": reason}
        super().__init__(message, "CONFIGURATION_ERROR", details)
