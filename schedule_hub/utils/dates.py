"""
Date helpers shared by the calendar sources and the aggregation engine.

All instants handled by schedule_hub are timezone-aware UTC datetimes.
All-day events are pinned to midnight UTC of their calendar date.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_all_day_instant(value: Union[date, datetime, str]) -> datetime:
    """
    Map a calendar date to its all-day instant (midnight UTC).

    Datetimes keep the calendar date of their own offset, so
    "2024-03-01T00:00:00-05:00" becomes 2024-03-01T00:00:00Z.
    Strings may be plain dates ("2024-03-01") or ISO-8601 timestamps.
    """
    if isinstance(value, str):
        value = parse_instant_or_date(value)
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def parse_instant_or_date(value: str) -> Union[date, datetime]:
    """Parse "YYYY-MM-DD" as a date and anything longer as an ISO-8601 datetime."""
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def is_midnight(value: datetime) -> bool:
    return value.time() == time.min


def get_date_range(days_to_show: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Default fetch window: from the start of today (UTC) for ``days_to_show`` days.

    Args:
        days_to_show: Number of days in the window (must be positive)
        now: Reference time (defaults to the current time)

    Returns:
        (start, end) tuple of aware UTC datetimes
    """
    if days_to_show < 1:
        raise ValueError(f"days_to_show must be positive, got: {days_to_show}")

    reference = ensure_utc(now or datetime.now(timezone.utc))
    start = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=days_to_show)


def isoformat_utc(value: datetime) -> str:
    """RFC 3339 timestamp with a trailing "Z", as expected by both backends."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")
