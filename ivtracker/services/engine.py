"""Volatility engine: owns the published snapshot, history and references."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from ivtracker.core.config import settings
from ivtracker.models import Comparison, HistoricalStats, HistoryRecord, ReferenceSnapshot, Snapshot
from ivtracker.providers import OptionsMarketProvider, PriceProvider, UpstreamUnavailable
from ivtracker.services.backfill import HistoryBackfiller
from ivtracker.services.comparator import compare
from ivtracker.services.history_store import HistoryStore
from ivtracker.services.reference_tracker import ReferenceSnapshotTracker
from ivtracker.services.snapshot_builder import BuildError, SnapshotBuilder
from ivtracker.utils.formatting import format_comparison_summary
from ivtracker.utils.time import from_millis, start_of_utc_day, utc_now


logger = logging.getLogger(__name__)


class NotReady(Exception):
    """No snapshot has been built yet (distinct from a failed build)."""
    pass


class VolatilityEngine:
    """Process-owned context for a single instrument.

    The published snapshot is only ever replaced by a single assignment of a
    fully built value, so readers never observe a half-updated snapshot.
    """

    def __init__(
        self,
        options_provider: OptionsMarketProvider,
        price_provider: PriceProvider,
        history: Optional[HistoryStore] = None,
        references: Optional[ReferenceSnapshotTracker] = None,
        expiry_tolerance: Optional[timedelta] = None,
    ):
        if expiry_tolerance is None:
            expiry_tolerance = timedelta(minutes=settings.atm_expiry_tolerance_minutes)

        self.options_provider = options_provider
        self.price_provider = price_provider
        self.history = history if history is not None else HistoryStore()
        self.references = references if references is not None else ReferenceSnapshotTracker()
        self.builder = SnapshotBuilder(options_provider, expiry_tolerance)
        self.backfiller = HistoryBackfiller(price_provider, options_provider, self.history)

        self._snapshot: Optional[Snapshot] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    def get_current_snapshot(self) -> Snapshot:
        """
        Get the published snapshot.

        Raises:
            NotReady: If no build has succeeded yet
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise NotReady("Not ready")
        return snapshot

    async def refresh_snapshot(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Rebuild and publish the snapshot.

        On failure the previously published snapshot stays in effect and the
        error propagates to the caller.

        Raises:
            BuildError: If ATM selection or IV resolution failed
            UpstreamUnavailable: If an upstream fetch failed
        """
        async with self._refresh_lock:
            try:
                snapshot = await self.builder.build(now)
            except (BuildError, UpstreamUnavailable) as e:
                logger.error(f"Snapshot refresh failed ({type(e).__name__}): {e}")
                raise

            self._snapshot = snapshot
            logger.info(f"Published snapshot for {snapshot.date} @ ${snapshot.spot_price:,.2f}")

        self.observe_references(now)
        return snapshot

    def observe_references(self, now: Optional[datetime] = None) -> None:
        """Let the reference tracker latch weekly/monthly references if due."""
        if self._snapshot is None:
            return
        if now is None:
            now = utc_now()
        self.references.on_new_snapshot(self._snapshot, start_of_utc_day(now).date())

    def get_reference_snapshots(self) -> Dict[str, Optional[ReferenceSnapshot]]:
        return {"weekly": self.references.weekly, "monthly": self.references.monthly}

    async def get_comparison(self, snapshot: Snapshot, now: Optional[datetime] = None) -> Comparison:
        """
        Compare a snapshot against the current price and its day's high/low.

        The kline is always the one for the snapshot's own UTC day. A snapshot
        still published after midnight (rollover build pending or failing) is
        measured against its own, now closed, candle rather than the new day's.

        Raises:
            UpstreamUnavailable: If the price or kline fetch fails
        """
        if now is None:
            now = utc_now()

        current_price, kline = await asyncio.gather(
            self.options_provider.get_index_price(),
            self.price_provider.get_daily_kline(from_millis(snapshot.timestamp)),
        )
        comparison = compare(snapshot, current_price, kline.high, kline.low, now)
        logger.debug(format_comparison_summary(comparison))
        return comparison

    def get_historical_stats(self) -> HistoricalStats:
        return self.history.stats()

    def record_today(self, comparison: Comparison) -> HistoryRecord:
        """Fold a comparison into history, keyed by its snapshot date (overwrites intraday)."""
        return self.history.upsert(
            comparison.snapshot_date,
            comparison.weekly.surprise_ratio,
            comparison.monthly.surprise_ratio,
            comparison.current_price,
        )

    async def initialize(self, now: Optional[datetime] = None) -> bool:
        """
        Backfill history, then build the first snapshot.

        Failures are logged; a failed first build leaves the engine NotReady
        for the scheduler to retry.

        Returns:
            True if a snapshot was published
        """
        logger.info("Initializing...")

        await self.backfiller.backfill(now=now)

        try:
            await self.refresh_snapshot(now)
        except (BuildError, UpstreamUnavailable):
            logger.error("Initial snapshot failed; serving NotReady until the next refresh")
            return False

        logger.info("Ready!")
        return True

    async def close(self):
        """Close upstream clients."""
        await self.options_provider.close()
        await self.price_provider.close()
