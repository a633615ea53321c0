"""Rolling surprise-ratio history models."""
from dataclasses import dataclass
from enum import Enum


class Trend(str, Enum):
    """Direction of recent surprise ratios."""
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"


@dataclass(frozen=True)
class HistoryRecord:
    """Surprise ratios for one calendar date."""
    date: str
    weekly_surprise: float
    monthly_surprise: float
    reference_price: float


@dataclass(frozen=True)
class HistoricalStats:
    """Averages and trends over the retained history.

    days_tracked == 0 means there is not enough data to display.
    """
    weekly_avg_surprise: float
    weekly_trend: Trend
    monthly_avg_surprise: float
    monthly_trend: Trend
    days_tracked: int

    @classmethod
    def insufficient(cls) -> "HistoricalStats":
        return cls(
            weekly_avg_surprise=0.0,
            weekly_trend=Trend.FLAT,
            monthly_avg_surprise=0.0,
            monthly_trend=Trend.FLAT,
            days_tracked=0,
        )
