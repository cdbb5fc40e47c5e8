"""
Timestamp normalization and calendar helpers.

Movements may arrive with an ISO-8601 string or with the legacy document
database shape ``{"_seconds": ..., "_nanoseconds": ...}``. Everything past the
request boundary works with timezone-aware UTC datetimes only.
"""

import calendar
from datetime import UTC, date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo


def normalize_timestamp(value: Any) -> datetime:
    """Convert any accepted timestamp shape into an aware UTC datetime.

    Raises:
        ValueError: if the value is not a recognised timestamp shape.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, dict) and "_seconds" in value:
        try:
            seconds = float(value["_seconds"])
            nanos = float(value.get("_nanoseconds") or 0)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid legacy timestamp: {value!r}") from e
        return datetime.fromtimestamp(seconds, tz=UTC) + timedelta(
            microseconds=nanos / 1000
        )
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid ISO-8601 timestamp: {value!r}") from e
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if dt.tzinfo is None:
        # Naive values are stored as UTC
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def local_date(value: datetime, tz: ZoneInfo) -> date:
    """Calendar date of an instant in the given zone."""
    return value.astimezone(tz).date()


def month_window(month: int, year: int, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return ``[first of month, first of next month)`` as UTC instants."""
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(month: int, year: int, offset: int) -> tuple[int, int]:
    """Move ``offset`` calendar months from (month, year); negative goes back."""
    index = year * 12 + (month - 1) + offset
    return index % 12 + 1, index // 12


def period_label(month: int, year: int) -> str:
    """Human label for a calendar month, e.g. ``October 2025``."""
    return f"{calendar.month_name[month]} {year}"
