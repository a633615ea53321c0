"""Canonical option expiry dates (weekly and monthly) in UTC.

Options on the venue settle at 08:00 UTC on Fridays. The weekly leg is the
next such settlement; the monthly leg is the last Friday of the month. When
both land on the same Friday the monthly leg moves to the following month so
the two horizons never reference the same contract.
"""
import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ivtracker.utils.time import ensure_utc


FRIDAY = calendar.FRIDAY  # date.weekday() == 4
SETTLEMENT_HOUR_UTC = 8


@dataclass(frozen=True)
class ExpiryPair:
    """Resolved target expiries for the two horizons."""
    weekly: datetime
    monthly: datetime
    collision_corrected: bool = False


def _settlement(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, SETTLEMENT_HOUR_UTC, tzinfo=timezone.utc)


def next_weekly_expiry(now: datetime) -> datetime:
    """
    Get the next Friday 08:00 UTC strictly after now.

    A Friday before 08:00 UTC resolves to the same day; at or after 08:00 it
    rolls to the following week.
    """
    now = ensure_utc(now)
    days_until_friday = (FRIDAY - now.weekday()) % 7
    candidate = (now + timedelta(days=days_until_friday)).replace(
        hour=SETTLEMENT_HOUR_UTC, minute=0, second=0, microsecond=0
    )
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def last_friday_of_month(year: int, month: int) -> datetime:
    """
    Get the last Friday of a month at 08:00 UTC.

    Args:
        year: Calendar year
        month: 1-12; 13 rolls over to January of the next year

    Returns:
        Aware datetime of the monthly settlement
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1

    last_day = calendar.monthrange(year, month)[1]
    last_weekday = calendar.weekday(year, month, last_day)
    days_back = (last_weekday - FRIDAY) % 7
    return _settlement(year, month, last_day - days_back)


def next_monthly_expiry(now: datetime) -> datetime:
    """Get this month's last-Friday expiry if still ahead of now, else next month's."""
    now = ensure_utc(now)
    this_month = last_friday_of_month(now.year, now.month)
    if now < this_month:
        return this_month
    return last_friday_of_month(now.year, now.month + 1)


def resolve_expiries(now: datetime) -> ExpiryPair:
    """
    Resolve weekly and monthly target expiries, applying the collision rule.

    If the week's Friday is also the month's last Friday, the monthly leg
    resolves to the last Friday of the following month.
    """
    weekly = next_weekly_expiry(now)
    monthly = next_monthly_expiry(now)

    if weekly == monthly:
        return ExpiryPair(
            weekly=weekly,
            monthly=last_friday_of_month(monthly.year, monthly.month + 1),
            collision_corrected=True,
        )

    return ExpiryPair(weekly=weekly, monthly=monthly)
