"""Snapshot refresh scheduler."""
import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from ivtracker.core.config import settings
from ivtracker.providers import UpstreamUnavailable
from ivtracker.services import BuildError, VolatilityEngine

logger = logging.getLogger(__name__)


class SnapshotScheduler:
    """Re-invokes snapshot refresh on a timer; the engine itself never retries."""

    def __init__(self, engine: VolatilityEngine, interval_minutes: Optional[int] = None):
        logger.info("Initializing SnapshotScheduler...")
        self.engine = engine
        self.interval_minutes = interval_minutes or settings.refresh_interval_minutes
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    async def refresh(self):
        """Refresh the snapshot, logging (not raising) failures."""
        try:
            await self.engine.refresh_snapshot()
        except (BuildError, UpstreamUnavailable) as e:
            logger.warning(f"Scheduled refresh failed, keeping previous snapshot: {e}")

    async def roll_day(self):
        """Build the new day's snapshot at 00:00 UTC."""
        logger.info("UTC day rolled over, rebuilding snapshot")
        await self.refresh()

    def start(self):
        """Start the scheduler with refresh jobs."""
        logger.info("="*60)
        logger.info("Starting snapshot scheduler...")
        logger.info(f"Refresh cadence: every {self.interval_minutes} minutes")
        logger.info("="*60)

        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="refresh_snapshot",
            replace_existing=True
        )

        # Snapshot timestamps are pinned to 00:00 UTC of their day
        self.scheduler.add_job(
            self.roll_day,
            trigger=CronTrigger(hour=0, minute=0, timezone="UTC"),
            id="roll_day",
            replace_existing=True
        )

        self.scheduler.start()
        logger.info("Scheduler started successfully")

    def shutdown(self):
        """Stop the scheduler without waiting for running jobs."""
        if self.scheduler.running:
            logger.info("Shutting down scheduler...")
            self.scheduler.shutdown(wait=False)
