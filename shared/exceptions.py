"""
Base exception classes for the fitness client.

Every error the client raises carries a user-facing ``message`` plus two
flags screens use to decide what to offer: retry, or a fresh login.
Modules subclass these bases and override the flags where they differ.
"""

from typing import Optional, Any


class FitnessClientError(Exception):
    """
    Base exception for all fitness client errors.

    Attributes:
        message: Text safe to show to the user
        code: Stable machine-readable identifier (defaults to the class name)
        details: Extra context for logs
    """

    retryable = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    @property
    def is_retryable(self) -> bool:
        """Whether repeating the same operation may succeed."""
        return self.retryable

    @property
    def requires_authentication(self) -> bool:
        """Whether the user has to log in again."""
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.is_retryable,
            "details": self.details,
        }


class ValidationError(FitnessClientError):
    """Caller input was rejected before anything was sent."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code, {"field": field} if field else None)
        self.field = field


class ExternalServiceError(FitnessClientError):
    """Error communicating with a remote service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
