"""Calendar-day helpers.

Freshness and countdown arithmetic operate on calendar dates, never on
elapsed time: an artifact produced at 23:59 is stale one minute later.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Optional, Union

DateLike = Union[datetime, date]


def calendar_day(value: DateLike, tz: Optional[tzinfo] = None) -> date:
    """Normalize a timestamp to the calendar date it falls on in ``tz``.

    Aware datetimes are converted into ``tz`` (the local zone when ``tz`` is
    None). Naive datetimes are taken as already being wall-clock time.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def same_calendar_day(first: DateLike, second: DateLike, tz: Optional[tzinfo] = None) -> bool:
    """Return True when both timestamps fall on the same calendar day."""
    return calendar_day(first, tz) == calendar_day(second, tz)


def days_between(target: DateLike, now: DateLike, tz: Optional[tzinfo] = None) -> int:
    """Return the calendar-day difference ``target - now``; may be negative."""
    return (calendar_day(target, tz) - calendar_day(now, tz)).days


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValueError("empty timestamp")
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    return datetime.fromisoformat(cleaned)
