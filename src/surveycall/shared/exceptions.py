"""
Custom exception classes for the application.
"""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ConfigError(AppException):
    """Raised at startup when configuration or the question source is unusable."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "CONFIG_ERROR", details)


class NotFoundError(AppException):
    """Raised when a participant is not found."""

    def __init__(
        self,
        message: str = "Participant not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "NOT_FOUND", details)


class DuplicateCreateError(AppException):
    """Raised when a participant with the same call id already exists."""

    def __init__(self, call_id: str, message: str | None = None) -> None:
        self.call_id = call_id
        super().__init__(
            message or f"Participant already exists: {call_id}",
            "DUPLICATE_PARTICIPANT",
            {"call_id": call_id},
        )


class UpstreamError(AppException):
    """Raised when the recording API cannot deliver a recording."""

    def __init__(
        self,
        message: str = "Recording fetch failed",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        merged = dict(details or {})
        if status_code is not None:
            merged["upstream_status"] = status_code
        super().__init__(message, "UPSTREAM_ERROR", merged)


class MalformedPayloadError(AppException):
    """Raised when a callback lacks fields the call flow expects."""

    def __init__(
        self,
        message: str = "Malformed callback payload",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "MALFORMED_PAYLOAD", details)
