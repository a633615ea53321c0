"""Builds the daily snapshot from live options data."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from ivtracker.models import OptionInstrument, OptionMetrics, OptionQuote, Snapshot
from ivtracker.providers import OptionsMarketProvider
from ivtracker.services.atm_selector import ATMNotFound, select_atm
from ivtracker.services.expiry import resolve_expiries
from ivtracker.services.implied_move import compute_option_metrics
from ivtracker.utils.time import start_of_utc_day, to_millis, utc_date_str, utc_now


logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Snapshot construction was abandoned; no partial snapshot exists."""
    pass


class SnapshotBuilder:
    """Assemble a Snapshot from spot, chain and per-leg tickers."""

    def __init__(self, provider: OptionsMarketProvider, expiry_tolerance: Optional[timedelta] = None):
        self.provider = provider
        self.expiry_tolerance = expiry_tolerance or timedelta(0)

    async def build(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Build a snapshot for the current UTC day.

        Steps:
        1. Fetch spot price and unexpired chain (concurrently)
        2. Resolve weekly/monthly expiries (with collision correction)
        3. Select the ATM contract for each leg
        4. Fetch both legs' tickers (concurrently)
        5. Compute implied move metrics per leg

        Args:
            now: As-of time (defaults to now)

        Returns:
            Snapshot whose timestamp is 00:00 UTC of the current day

        Raises:
            BuildError: If either leg has no ATM contract or no usable IV
            UpstreamUnavailable: If any upstream fetch fails
        """
        if now is None:
            now = utc_now()

        logger.info("Creating snapshot...")

        spot_price, chain = await asyncio.gather(
            self.provider.get_index_price(),
            self.provider.get_option_chain(),
        )
        logger.info(f"Spot: ${spot_price:,.2f} | Loaded {len(chain)} options")

        expiries = resolve_expiries(now)
        logger.info(f"Next Friday: {expiries.weekly.isoformat()}")
        if expiries.collision_corrected:
            logger.warning(f"Weekly = Monthly, using next month: {expiries.monthly.isoformat()}")
        else:
            logger.info(f"Monthly (last Fri of month): {expiries.monthly.isoformat()}")

        try:
            weekly_atm = select_atm(chain, expiries.weekly, spot_price, self.expiry_tolerance)
            monthly_atm = select_atm(chain, expiries.monthly, spot_price, self.expiry_tolerance)
        except ATMNotFound as e:
            logger.warning(f"ATM selection failed: {e}")
            raise BuildError(f"Could not find ATM options: {e}") from e

        logger.info(f"Weekly ATM: {weekly_atm.strike} ({weekly_atm.instrument_id})")
        logger.info(f"Monthly ATM: {monthly_atm.strike} ({monthly_atm.instrument_id})")

        weekly_option, monthly_option = await asyncio.gather(
            self._leg_metrics(weekly_atm, spot_price, now),
            self._leg_metrics(monthly_atm, spot_price, now),
        )

        for label, leg in (("Weekly", weekly_option), ("Monthly", monthly_option)):
            logger.info(
                f"{label}: IV {leg.atm_iv:.2f}% | {leg.hours_to_expiry:.1f}h | "
                f"Daily: ${leg.implied_daily_move:,.2f}"
            )

        day_start = start_of_utc_day(now)
        return Snapshot(
            date=utc_date_str(day_start),
            timestamp=to_millis(day_start),
            spot_price=spot_price,
            weekly_option=weekly_option,
            monthly_option=monthly_option,
        )

    async def _leg_metrics(self, instrument: OptionInstrument, spot: float, now: datetime) -> OptionMetrics:
        ticker = await self.provider.get_option_ticker(instrument.instrument_id)
        try:
            quote = OptionQuote.from_ticker(instrument, ticker)
        except ValueError as e:
            raise BuildError(str(e)) from e

        if quote.atm_iv <= 0:
            raise BuildError(f"No usable implied volatility for {instrument.instrument_id}")

        return compute_option_metrics(quote, spot, now)
