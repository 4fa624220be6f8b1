"""
Date encoding convention for the platform API.

All timestamps on the wire (and in the persisted user record) are UTC and
formatted as ``YYYY-MM-DDTHH:MM:SS[.fraction]Z``. The fraction may be absent,
3 digits (milliseconds) or 9 digits (nanoseconds). We always emit the
millisecond form and accept all three when reading.

Python datetimes carry microseconds, so a nanosecond fraction is truncated
to its first six digits.
"""

import calendar
import re
from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, PlainSerializer


_DATE_TIME = r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})"

# Tried in order: nanoseconds, milliseconds, whole seconds.
API_DATE_FORMATS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("nanoseconds", re.compile(_DATE_TIME + r"\.(\d{9})Z")),
    ("milliseconds", re.compile(_DATE_TIME + r"\.(\d{3})Z")),
    ("seconds", re.compile(_DATE_TIME + r"Z")),
)


def _build(match: re.Match[str]) -> Optional[datetime]:
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) if match.re.groups > 6 else None
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0

    # Calendar-invalid values (month 13, Feb 30) match the pattern but are
    # not a date; report them as unparseable instead of raising.
    if not (year >= 1 and 1 <= month <= 12 and 1 <= day <= 31 and hour < 24 and minute < 60 and second < 60):
        return None
    if day > calendar.monthrange(year, month)[1]:
        return None

    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=timezone.utc)


def parse_api_datetime(value: str) -> Optional[datetime]:
    """
    Parse an API timestamp string.

    Each known format is tried explicitly, in order, and the first full match
    wins.

    Args:
        value: Timestamp string such as ``2024-05-01T10:00:00.123Z``

    Returns:
        Timezone-aware UTC datetime, or None if no format matches
    """
    if not isinstance(value, str):
        return None

    for _name, pattern in API_DATE_FORMATS:
        match = pattern.fullmatch(value)
        if match is not None:
            return _build(match)
    return None


def format_api_datetime(value: datetime) -> str:
    """
    Format a datetime with the millisecond convention.

    Naive datetimes are taken to already be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    # strftime("%Y") does not zero-pad years below 1000 on every platform
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def _validate_api_datetime(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    parsed = parse_api_datetime(value)
    if parsed is None:
        raise ValueError(f"Unrecognized timestamp format: {value!r}")
    return parsed


APIDateTime = Annotated[
    datetime,
    BeforeValidator(_validate_api_datetime),
    PlainSerializer(format_api_datetime, return_type=str, when_used="json"),
]
"""Datetime field type that reads and writes the API date convention."""
