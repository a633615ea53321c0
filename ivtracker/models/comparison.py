"""Realtime comparison of observed range against implied moves."""
from dataclasses import dataclass
from enum import Enum


class VolStatus(str, Enum):
    """Volatility regime for one horizon."""
    HIGH_VOL = "HIGH_VOL"
    NORMAL = "NORMAL"
    LOW_VOL = "LOW_VOL"


@dataclass(frozen=True)
class HorizonComparison:
    """Surprise ratio and classification for a single horizon."""
    surprise_ratio: float
    status: VolStatus
    signal: str


@dataclass(frozen=True)
class Comparison:
    """Point-in-time evaluation of a snapshot against today's price action."""
    timestamp: int
    snapshot_date: str
    current_price: float
    day_high: float
    day_low: float
    actual_range: float
    actual_range_percent: float
    weekly: HorizonComparison
    monthly: HorizonComparison
    time_elapsed_hours: float
    projected_eod_range: float
