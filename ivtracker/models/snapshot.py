"""Daily snapshot and calendar-anchored reference models."""
from dataclasses import dataclass

from ivtracker.models.option import OptionMetrics


@dataclass(frozen=True)
class Snapshot:
    """Reference point for one trading day.

    Replaced wholesale on refresh; never mutated.
    """
    date: str  # YYYY-MM-DD, UTC
    timestamp: int  # 00:00 UTC of date, epoch millis
    spot_price: float
    weekly_option: OptionMetrics
    monthly_option: OptionMetrics


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Implied daily figures latched on a weekly or monthly boundary."""
    date: str
    weekly_implied_daily: float
    monthly_implied_daily: float
    reference_price: float

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "ReferenceSnapshot":
        return cls(
            date=snapshot.date,
            weekly_implied_daily=snapshot.weekly_option.implied_daily_move,
            monthly_implied_daily=snapshot.monthly_option.implied_daily_move,
            reference_price=snapshot.spot_price,
        )
