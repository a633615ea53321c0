"""Time utilities for UTC day boundaries and epoch-millisecond conversion."""
from datetime import datetime, timedelta, timezone
from typing import List, Optional


MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are interpreted as already being in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_millis(value: datetime) -> int:
    """Convert a datetime to UTC epoch milliseconds."""
    return int(round(ensure_utc(value).timestamp() * 1000))


def from_millis(ms: int) -> datetime:
    """Convert UTC epoch milliseconds to an aware datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def start_of_utc_day(value: Optional[datetime] = None) -> datetime:
    """
    Get 00:00 UTC of the calendar day containing value.

    Args:
        value: Reference time (defaults to now)

    Returns:
        Aware datetime at midnight UTC
    """
    if value is None:
        value = utc_now()
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def utc_date_str(value: datetime) -> str:
    """Format the UTC calendar date of value as YYYY-MM-DD."""
    return ensure_utc(value).date().isoformat()


def format_expiry(ms: int) -> str:
    """Format an expiry timestamp as 'YYYY-MM-DD HH:MM' (UTC)."""
    return from_millis(ms).strftime("%Y-%m-%d %H:%M")


def days_between(start_ms: int, end_ms: int) -> float:
    """Fractional days from start_ms to end_ms (negative when end is earlier)."""
    return (end_ms - start_ms) / MS_PER_DAY


def previous_days(reference: datetime, days: int) -> List[datetime]:
    """
    List 00:00 UTC of the calendar days preceding reference, oldest first.

    Args:
        reference: Reference time; its own day is excluded
        days: Number of days to go back

    Returns:
        Day starts from reference-days up to reference-1
    """
    today_start = start_of_utc_day(reference)
    return [today_start - timedelta(days=i) for i in range(days, 0, -1)]
