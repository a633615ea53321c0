"""Data models for upstream price series."""
from dataclasses import dataclass


@dataclass(frozen=True)
class DailyKline:
    """One daily OHLC candle."""
    open_time: int  # UTC epoch millis
    open: float
    high: float
    low: float
    close: float

    @property
    def range(self) -> float:
        return self.high - self.low


@dataclass(frozen=True)
class VolatilityPoint:
    """Historical volatility observation (percent, annualized)."""
    timestamp: int
    volatility: float
