"""
Session module exceptions.
"""

from typing import Optional

from shared.exceptions import FitnessClientError


class SessionError(FitnessClientError):
    """Base exception for session-related errors."""

    pass


class SessionPersistenceError(SessionError):
    """
    Raised when a session (or user update) could not be written durably.

    When raised by establish_session the store has already been cleared.
    """

    def __init__(self, message: str = "Failed to save session to secure storage", cause: Optional[str] = None):
        super().__init__(
            message,
            code="SESSION_PERSISTENCE_FAILED",
            details={"cause": cause} if cause else None,
        )
