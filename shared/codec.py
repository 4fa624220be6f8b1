"""
JSON codec shared by the request executor and the session store.

Request bodies and the persisted user record go through the same encoder so
that dates always use the millisecond convention from shared.dates.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .dates import format_api_datetime


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="python", by_alias=True, exclude_none=True)
    if isinstance(value, datetime):
        return format_api_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json(value: Any) -> bytes:
    """
    Encode a value as UTF-8 JSON.

    Pydantic models are dumped by alias with None fields omitted.

    Raises:
        TypeError: If the value contains something that cannot be encoded
        ValueError: If the value contains NaN/infinity or circular references
    """
    return json.dumps(value, default=_default, allow_nan=False, separators=(",", ":")).encode("utf-8")


def decode_json(data: bytes | str) -> Any:
    """
    Decode UTF-8 JSON.

    Raises:
        ValueError: If the payload is not valid JSON (json.JSONDecodeError
                    and UnicodeDecodeError are both ValueError subclasses)
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)
