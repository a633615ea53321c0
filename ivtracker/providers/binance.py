"""Binance daily kline provider implementation."""
import httpx
from datetime import datetime
from typing import Any, Optional
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)
import logging
from ivtracker.providers import PriceProvider, UpstreamUnavailable
from ivtracker.providers.models import DailyKline
from ivtracker.providers.schemas import KlinePayload
from ivtracker.core.config import settings
from ivtracker.utils.time import to_millis, utc_date_str


logger = logging.getLogger(__name__)


class BinanceProvider(PriceProvider):
    """Binance spot klines implementation of the daily price provider."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        symbol: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.binance_base_url).rstrip("/")
        self.symbol = symbol or settings.kline_symbol
        self.client = httpx.AsyncClient(timeout=timeout or settings.request_timeout_seconds)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _make_request(self, url: str, params: dict) -> Any:
        """Make HTTP request with retry logic for timeout and connection errors."""
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def get_daily_kline(self, day_start: datetime) -> DailyKline:
        """
        Fetch the 1d candle that opens at day_start.

        Args:
            day_start: 00:00 UTC of the requested day

        Returns:
            DailyKline for that day (still forming when the day is today)

        Raises:
            UpstreamUnavailable: On API failure or when no candle exists
        """
        url = f"{self.base_url}/klines"
        params = {
            "symbol": self.symbol,
            "interval": "1d",
            "startTime": to_millis(day_start),
            "limit": 1,
        }

        try:
            data = await self._make_request(url, params)
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (418, 429):
                raise UpstreamUnavailable(
                    f"Binance API rate limit exceeded ({e.response.status_code}). "
                    "Please wait before making more requests."
                )
            raise UpstreamUnavailable(f"Binance API error: {str(e)}")
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Binance API timeout after retries: {str(e)}")
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Binance API connection error: {str(e)}")
        except ValueError as e:
            raise UpstreamUnavailable(f"Binance API returned invalid JSON: {str(e)}")

        if not isinstance(data, list) or len(data) == 0:
            raise UpstreamUnavailable(f"No kline data for {self.symbol} on {utc_date_str(day_start)}")

        try:
            return KlinePayload.from_row(data[0]).to_kline()
        except ValueError as e:
            raise UpstreamUnavailable(f"Binance kline payload rejected: {e}")

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
