"""Custom exceptions shared across the pipeline."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception with a structured error payload."""

    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible error record."""
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class ConfigurationError(AppException):
    """Required configuration is missing or invalid. Fatal for a job."""

    error_code = "CONFIGURATION_ERROR"
    message = "Required configuration is missing"


class ExternalServiceError(AppException):
    """External service error."""

    error_code = "EXTERNAL_SERVICE_ERROR"
    message = "External service temporarily unavailable"


class StructuringError(AppException):
    """Article content could not be turned into structured data."""

    error_code = "STRUCTURING_ERROR"
    message = "Article structuring failed"


class JobError(AppException):
    """Job execution failed."""

    error_code = "JOB_ERROR"
    message = "Job execution failed"
