"""
Request executor error taxonomy.

Every failure of an API call is reported as exactly one of these classes.
Screens show ``message`` to the user; UnauthorizedError is additionally
followed by a logout driven by the session store.
"""

from typing import Any, Optional

from shared.exceptions import ExternalServiceError

API_SERVICE = "fitness-api"


class APIError(ExternalServiceError):
    """Base class of the closed set of API failures."""

    default_message = "An unexpected error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message or self.default_message, API_SERVICE, code, details)


class InvalidURLError(APIError):
    default_message = "The URL provided was invalid."

    def __init__(self, url: str):
        super().__init__(code="INVALID_URL", details={"url": url})


class NetworkUnavailableError(APIError):
    default_message = "No internet connection. Please check your network settings."
    retryable = True

    def __init__(self, reason: Optional[str] = None):
        super().__init__(code="NETWORK_UNAVAILABLE", details={"reason": reason} if reason else None)


class RequestTimeoutError(APIError):
    default_message = "Request timed out. Please try again."
    retryable = True

    def __init__(self):
        super().__init__(code="REQUEST_TIMEOUT")


class ServerUnavailableError(APIError):
    default_message = "Server is temporarily unavailable. Please try again later."
    retryable = True

    def __init__(self, reason: Optional[str] = None):
        super().__init__(code="SERVER_UNAVAILABLE", details={"reason": reason} if reason else None)


class UnauthorizedError(APIError):
    default_message = "Your session has expired. Please log in again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="UNAUTHORIZED")

    @property
    def requires_authentication(self) -> bool:
        return True


class ForbiddenError(APIError):
    default_message = "You don't have permission to perform this action."

    def __init__(self):
        super().__init__(code="FORBIDDEN")


class ConflictError(APIError):
    default_message = "A conflict occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="CONFLICT", details={"status_code": 409})


class ServerError(APIError):
    """Any other non-2xx status. ``server_message`` is None when the body had no error text."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(
            message or f"Server error ({status_code}). Please try again.",
            code="SERVER_ERROR",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.server_message = message

    @property
    def is_retryable(self) -> bool:
        return self.status_code >= 500


class DecodingFailedError(APIError):
    default_message = "Failed to process server response."

    def __init__(self, reason: Optional[str] = None):
        super().__init__(code="DECODING_FAILED", details={"reason": reason} if reason else None)


class EncodingFailedError(APIError):
    default_message = "Failed to prepare request data."

    def __init__(self, reason: Optional[str] = None):
        super().__init__(code="ENCODING_FAILED", details={"reason": reason} if reason else None)


class NoDataError(APIError):
    default_message = "No data was received from the server."

    def __init__(self):
        super().__init__(code="NO_DATA")


class UnknownAPIError(APIError):
    def __init__(self, message: str):
        super().__init__(f"An unexpected error occurred: {message}", code="UNKNOWN")
        self.reason = message
