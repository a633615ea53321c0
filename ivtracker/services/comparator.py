"""Realtime comparison of today's range against the snapshot's implied daily moves."""
from datetime import datetime

from ivtracker.models import Comparison, HorizonComparison, OptionMetrics, Snapshot, VolStatus
from ivtracker.utils.formatting import format_horizon_signal
from ivtracker.utils.time import MS_PER_HOUR, to_millis


HIGH_VOL_THRESHOLD = 1.3
LOW_VOL_THRESHOLD = 0.7
HOURS_PER_DAY = 24


def classify(ratio: float) -> VolStatus:
    """Classify a surprise ratio: > 1.3 HIGH_VOL, < 0.7 LOW_VOL, else NORMAL."""
    if ratio > HIGH_VOL_THRESHOLD:
        return VolStatus.HIGH_VOL
    if ratio < LOW_VOL_THRESHOLD:
        return VolStatus.LOW_VOL
    return VolStatus.NORMAL


def surprise_ratio(actual_range: float, implied_daily_move: float) -> float:
    """Observed range divided by the implied daily move."""
    if implied_daily_move <= 0:
        raise ValueError(f"implied daily move must be positive, got {implied_daily_move}")
    return actual_range / implied_daily_move


def compare_horizon(actual_range: float, option: OptionMetrics, horizon: str) -> HorizonComparison:
    ratio = surprise_ratio(actual_range, option.implied_daily_move)
    status = classify(ratio)
    return HorizonComparison(
        surprise_ratio=ratio,
        status=status,
        signal=format_horizon_signal(ratio, horizon, status),
    )


def projected_eod_range(actual_range: float, time_elapsed_hours: float) -> float:
    """Linearly extrapolate the range so far to a full 24h day."""
    if time_elapsed_hours <= 0:
        return actual_range
    return actual_range * (HOURS_PER_DAY / time_elapsed_hours)


def compare(
    snapshot: Snapshot,
    current_price: float,
    day_high: float,
    day_low: float,
    now: datetime
) -> Comparison:
    """
    Evaluate a snapshot against observed price action.

    The range percentage is relative to the snapshot's spot price so the
    denominator stays fixed through the day.

    Args:
        snapshot: Published snapshot
        current_price: Latest spot price
        day_high: Today's high so far
        day_low: Today's low so far
        now: Evaluation time

    Returns:
        Comparison with per-horizon surprise ratios and classifications
    """
    now_ms = to_millis(now)
    actual_range = day_high - day_low
    time_elapsed_hours = (now_ms - snapshot.timestamp) / MS_PER_HOUR

    return Comparison(
        timestamp=now_ms,
        snapshot_date=snapshot.date,
        current_price=current_price,
        day_high=day_high,
        day_low=day_low,
        actual_range=actual_range,
        actual_range_percent=(actual_range / snapshot.spot_price) * 100,
        weekly=compare_horizon(actual_range, snapshot.weekly_option, "weekly"),
        monthly=compare_horizon(actual_range, snapshot.monthly_option, "monthly"),
        time_elapsed_hours=time_elapsed_hours,
        projected_eod_range=projected_eod_range(actual_range, time_elapsed_hours),
    )
