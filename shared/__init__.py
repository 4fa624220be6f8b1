"""
Shared infrastructure for the fitness client.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- dates: API date encoding convention
- codec: JSON encoding/decoding for bodies and persisted records
- exceptions: Base exception classes
- log_config: Logging setup for entry points

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .codec import encode_json, decode_json
from .dates import APIDateTime, format_api_datetime, parse_api_datetime
from .exceptions import (
    FitnessClientError,
    ValidationError,
    ExternalServiceError,
)
from .models import APIModel, APIErrorResponse

__all__ = [
    "Settings",
    "get_settings",
    "encode_json",
    "decode_json",
    "APIDateTime",
    "format_api_datetime",
    "parse_api_datetime",
    "FitnessClientError",
    "ValidationError",
    "ExternalServiceError",
    "APIModel",
    "APIErrorResponse",
]
