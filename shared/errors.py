"""
Shared error handling for the Zest Access services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ZestAccessException(Exception):
    """Base exception for Zest Access services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ZestAccessException):
    """A required setting is missing or malformed."""

    status_code = 500

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ValidationError(ZestAccessException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UpstreamError(ZestAccessException):
    """An outbound call failed or answered with a non-success status."""

    status_code = 502

    def __init__(self, service: str, message: str = "Upstream service error",
                 status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.service = service
        self.upstream_status = status_code
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__("UPSTREAM_ERROR", f"{service}: {message}", details)


class RateLimitError(ZestAccessException):
    """Rate limiting errors, ours or an upstream's."""

    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)
