"""
API module.

Typed request executor for the platform's REST API.

Public API:
- IAPIClient: Interface for performing requests
- APIClient: httpx-based implementation
- HTTPMethod, NO_CONTENT: Request/response helpers
- API exceptions: the closed APIError taxonomy
"""

from .interfaces import IAPIClient, QueryParams, UnauthorizedListener
from .models import HTTPMethod, NO_CONTENT
from .exceptions import (
    APIError,
    InvalidURLError,
    NetworkUnavailableError,
    RequestTimeoutError,
    ServerUnavailableError,
    UnauthorizedError,
    ForbiddenError,
    ConflictError,
    ServerError,
    DecodingFailedError,
    EncodingFailedError,
    NoDataError,
    UnknownAPIError,
)
from .service import APIClient, classify_connect_error

__all__ = [
    # Interface
    "IAPIClient",
    "QueryParams",
    "UnauthorizedListener",
    # Models
    "HTTPMethod",
    "NO_CONTENT",
    # Exceptions
    "APIError",
    "InvalidURLError",
    "NetworkUnavailableError",
    "RequestTimeoutError",
    "ServerUnavailableError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "ServerError",
    "DecodingFailedError",
    "EncodingFailedError",
    "NoDataError",
    "UnknownAPIError",
    # Service
    "APIClient",
    "classify_connect_error",
]
