"""
Date normalisation for stored values.

Dates reach the application in several shapes: native datetimes, store
timestamps (``{"seconds": ..., "nanoseconds": ...}``), ISO-8601 strings and
epoch milliseconds. Everything that formats or compares dates goes through
``to_date`` first. ``None`` means "unavailable"; nothing here raises on bad
input.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Final, Mapping, Optional

DEFAULT_DISPLAY_FORMAT: Final[str] = "%d %b %Y"
UNAVAILABLE_LABEL: Final[str] = "N/A"

_FALLBACK_FORMATS: Final[tuple[str, ...]] = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
)


def _from_epoch_seconds(seconds: float, nanoseconds: float = 0) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(seconds + nanoseconds / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_string(value: str) -> Optional[datetime]:
    text = value.strip()
    if not text:
        return None

    # fromisoformat rejects a trailing "Z" before Python 3.11
    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_date(value: Any) -> Optional[datetime]:
    """
    Convert any stored date-like value to a datetime.

    Args:
        value: datetime, date, timestamp mapping/object, string or number

    Returns:
        datetime, or None when the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, Mapping):
        seconds = value.get("seconds")
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds") or 0
            return _from_epoch_seconds(seconds, nanos if isinstance(nanos, (int, float)) else 0)
        return None
    if isinstance(value, (int, float)):
        # Numbers are epoch milliseconds, as written by browser clients
        return _from_epoch_seconds(value / 1000)
    if isinstance(value, str):
        return _from_string(value)

    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
        return _from_epoch_seconds(seconds, getattr(value, "nanoseconds", 0) or 0)
    return None


def format_date(
    value: Any,
    fmt: str = DEFAULT_DISPLAY_FORMAT,
    default: str = UNAVAILABLE_LABEL,
) -> str:
    """Format a date-like value, or return ``default`` if it is unavailable."""
    converted = to_date(value)
    if converted is None:
        return default
    return converted.strftime(fmt)


def sort_key(value: Any) -> float:
    """Comparable key for date-like values; unavailable dates sort first."""
    converted = to_date(value)
    if converted is None:
        return float("-inf")
    if converted.tzinfo is None:
        converted = converted.replace(tzinfo=timezone.utc)
    return converted.timestamp()
