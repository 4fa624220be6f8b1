"""
Secure storage module exceptions.

The session store treats every one of these as "value not available".
"""

from typing import Optional

from shared.exceptions import FitnessClientError


class StorageError(FitnessClientError):
    """Raised when the durable store cannot be read or written."""

    def __init__(self, message: str, key: Optional[str] = None, code: str = "STORAGE_ERROR"):
        super().__init__(
            message,
            code=code,
            details={"key": key} if key else None,
        )
        self.key = key


class AccessDeniedError(StorageError):
    """Raised when an access gate refuses to release a stored value."""

    def __init__(self, key: str, reason: str = "Access to secure storage was denied"):
        super().__init__(reason, key=key, code="ACCESS_DENIED")
