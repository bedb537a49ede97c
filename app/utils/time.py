"""Utility functions for time handling.

All timestamps should be UTC and timezone-aware. Persist UTC timestamps as
ISO-8601 strings with timezone offsets (e.g., "+00:00") via iso_now().
"""

from __future__ import annotations

import time
from datetime import date, datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def timestamp_ms() -> int:
    """Return current UTC timestamp in milliseconds."""
    return int(time.time() * 1000)


def epoch_ms_to_iso(value: int | str) -> str:
    """Convert a millisecond epoch (int or numeric string) to an ISO8601 UTC string."""
    millis = int(value)
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Accepts aware/naive datetimes, ``date`` objects and ISO strings
    (including the ``Z`` suffix and date-only ``YYYY-MM-DD``).

    Args:
        value: String, date or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def coerce_date(value: Any) -> date | None:
    """Coerce a date, datetime or ISO string to a calendar ``date`` (UTC)."""
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = coerce_datetime(value)
    return parsed.date() if parsed else None


def start_of_day(day: date) -> datetime:
    """Return 00:00:00 UTC of the given calendar day."""
    return datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Return the last representable instant (23:59:59.999999 UTC) of the given day."""
    return datetime.combine(day, datetime.max.time(), tzinfo=timezone.utc)


_MIN_UTC = datetime.min.replace(tzinfo=timezone.utc)


def timestamp_sort_key(value: Any) -> datetime:
    """Chronological sort key for an ISO timestamp; unparsable values sort oldest."""
    return coerce_datetime(value) or _MIN_UTC
