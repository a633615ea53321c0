"""Seed the history store with estimated surprise ratios for past days."""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ivtracker.core.config import settings
from ivtracker.providers import OptionsMarketProvider, PriceProvider, UpstreamUnavailable
from ivtracker.providers.models import VolatilityPoint
from ivtracker.services.history_store import HistoryStore
from ivtracker.services.implied_move import implied_daily_move
from ivtracker.utils.time import previous_days, to_millis, utc_date_str, utc_now


logger = logging.getLogger(__name__)


def closest_volatility(series: Sequence[VolatilityPoint], timestamp_ms: int) -> Optional[float]:
    """Volatility of the observation nearest to timestamp_ms, or None for an empty series."""
    if not series:
        return None
    return min(series, key=lambda p: abs(p.timestamp - timestamp_ms)).volatility


class HistoryBackfiller:
    """Backfill past days from daily candles.

    The implied daily move for a past day is estimated from that day's open
    and the venue's historical volatility nearest to 00:00 UTC, falling back
    to a flat default IV. Both horizons share the single estimate.
    """

    def __init__(
        self,
        price_provider: PriceProvider,
        options_provider: OptionsMarketProvider,
        history: HistoryStore,
        default_iv: Optional[float] = None,
        request_delay: Optional[float] = None,
    ):
        self.price_provider = price_provider
        self.options_provider = options_provider
        self.history = history
        self.default_iv = default_iv if default_iv is not None else settings.backfill_default_iv
        self.request_delay = request_delay if request_delay is not None else settings.backfill_request_delay_seconds

    async def _volatility_series(self) -> List[VolatilityPoint]:
        try:
            return await self.options_provider.get_volatility_history()
        except UpstreamUnavailable as e:
            logger.warning(f"Historical volatility unavailable, using {self.default_iv:.0f}% IV: {e}")
            return []

    async def backfill(self, days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """
        Backfill the given number of days preceding today, oldest first.

        Args:
            days: Days to backfill (default from settings)
            now: Reference time (defaults to now)

        Returns:
            Number of days recorded
        """
        if days is None:
            days = settings.backfill_days
        if now is None:
            now = utc_now()

        logger.info(f"Backfilling {days} days of historical data...")

        series = await self._volatility_series()
        recorded = 0

        for day_start in previous_days(now, days):
            date_str = utc_date_str(day_start)

            try:
                kline = await self.price_provider.get_daily_kline(day_start)
            except UpstreamUnavailable as e:
                logger.warning(f"Failed to backfill {date_str}: {e}")
                continue

            iv = closest_volatility(series, to_millis(day_start)) or self.default_iv
            implied = implied_daily_move(kline.open, iv)
            if implied <= 0:
                logger.warning(f"Skipping {date_str}: non-positive implied move")
                continue

            ratio = kline.range / implied
            self.history.upsert(date_str, ratio, ratio, kline.open)
            recorded += 1
            logger.info(
                f"{date_str}: Range ${kline.range:,.0f} / Implied ${implied:,.0f} "
                f"(IV {iv:.1f}%) = {ratio:.2f}x"
            )

            if self.request_delay > 0:
                await asyncio.sleep(self.request_delay)

        logger.info(f"Backfilled {recorded} days ({len(self.history)} retained)")
        return recorded
