"""
Custom exception classes for the application.
"""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500

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
            details: Additional error details (logged, never returned).
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class InputError(AppException):
    """Raised when a required request field is missing."""

    status_code = 400

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Missing {field}", "INPUT_ERROR", {"field": field})


class ConfigurationError(AppException):
    """Raised when no usable agent/telephony configuration matches a request.

    Every failed lookup carries the same message.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Missing or invalid agent/telephony configuration",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)


class UpstreamError(AppException):
    """Raised when the CRM or telephony platform call fails."""

    status_code = 500

    def __init__(
        self,
        message: str = "Upstream service request failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "UPSTREAM_ERROR", details)


class CallbackProcessingError(AppException):
    """Raised inside recording reconciliation; never surfaced to the caller."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CALLBACK_PROCESSING_ERROR", details)


class WebhookAuthError(AppException):
    """Raised when a dial-trigger webhook fails the shared-secret check."""

    status_code = 403

    def __init__(self, message: str = "Forbidden: invalid webhook secret") -> None:
        super().__init__(message, "WEBHOOK_AUTH_ERROR")
