"""Abstract interfaces for upstream market data providers."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from ivtracker.models import OptionInstrument, OptionTicker
from ivtracker.providers.models import DailyKline, VolatilityPoint


class UpstreamUnavailable(Exception):
    """Exception raised when an upstream source fails (network, timeout, non-2xx, bad payload).

    Retryable by the calling layer; never fatal to the process.
    """
    pass


class OptionsMarketProvider(ABC):
    """Abstract base class for the options venue (index price, chain, tickers)."""

    @abstractmethod
    async def get_index_price(self) -> float:
        """
        Fetch the underlying's current index (spot) price.

        Raises:
            UpstreamUnavailable: If the API call fails
        """
        pass

    @abstractmethod
    async def get_option_chain(self) -> List[OptionInstrument]:
        """
        Fetch every unexpired option instrument on the underlying.

        Raises:
            UpstreamUnavailable: If the API call fails
        """
        pass

    @abstractmethod
    async def get_option_ticker(self, instrument_id: str) -> OptionTicker:
        """
        Fetch bid/ask/mark implied volatility for one instrument.

        Raises:
            UpstreamUnavailable: If the API call fails
        """
        pass

    @abstractmethod
    async def get_volatility_history(self) -> List[VolatilityPoint]:
        """
        Fetch the venue's historical volatility series (percent, annualized).

        Raises:
            UpstreamUnavailable: If the API call fails
        """
        pass

    async def close(self):
        """Release network resources."""
        pass


class PriceProvider(ABC):
    """Abstract base class for daily OHLC candles."""

    @abstractmethod
    async def get_daily_kline(self, day_start: datetime) -> DailyKline:
        """
        Fetch the 1-day candle opening at day_start (00:00 UTC).

        Raises:
            UpstreamUnavailable: If the API call fails or no candle exists
        """
        pass

    async def close(self):
        """Release network resources."""
        pass


__all__ = [
    "UpstreamUnavailable",
    "OptionsMarketProvider",
    "PriceProvider",
    "DailyKline",
    "VolatilityPoint",
]
