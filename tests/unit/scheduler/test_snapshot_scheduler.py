"""Unit tests for SnapshotScheduler."""
import pytest
from unittest.mock import MagicMock

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ivtracker.providers import UpstreamUnavailable
from ivtracker.scheduler.main import SnapshotScheduler
from ivtracker.services import BuildError, VolatilityEngine


@pytest.fixture
def mock_engine():
    return MagicMock(spec=VolatilityEngine)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSnapshotSchedulerJobs:
    """Test job callbacks."""

    async def test_refresh(self, mock_engine):
        """✅ refresh() calls the engine."""
        await SnapshotScheduler(mock_engine, interval_minutes=15).refresh()
        mock_engine.refresh_snapshot.assert_awaited_once()

    @pytest.mark.parametrize("error", [
        BuildError("Could not find ATM options"),
        UpstreamUnavailable("Deribit API timeout after retries"),
    ])
    async def test_refresh_failure_swallowed(self, mock_engine, error):
        """✅ Build/upstream failures are logged, not raised."""
        mock_engine.refresh_snapshot.side_effect = error
        await SnapshotScheduler(mock_engine).refresh()
        mock_engine.refresh_snapshot.assert_awaited_once()

    async def test_roll_day(self, mock_engine):
        """✅ Day rollover triggers a rebuild."""
        await SnapshotScheduler(mock_engine).roll_day()
        mock_engine.refresh_snapshot.assert_awaited_once()


@pytest.mark.unit
class TestSnapshotSchedulerSetup:
    """Test job registration."""

    def test_interval_default(self, mock_engine):
        """✅ Interval falls back to settings (15 minutes)."""
        assert SnapshotScheduler(mock_engine).interval_minutes == 15

    def test_start_registers_jobs(self, mock_engine):
        """✅ start() adds the interval refresh and the midnight rollover."""
        scheduler = SnapshotScheduler(mock_engine, interval_minutes=10)
        scheduler.scheduler = MagicMock()

        scheduler.start()

        calls = {c.kwargs["id"]: c.kwargs["trigger"] for c in scheduler.scheduler.add_job.call_args_list}
        assert isinstance(calls["refresh_snapshot"], IntervalTrigger)
        assert calls["refresh_snapshot"].interval.total_seconds() == 600
        assert isinstance(calls["roll_day"], CronTrigger)
        scheduler.scheduler.start.assert_called_once()

    def test_shutdown_when_not_running(self, mock_engine):
        """✅ shutdown() is a no-op before start."""
        scheduler = SnapshotScheduler(mock_engine)
        scheduler.scheduler = MagicMock(running=False)

        scheduler.shutdown()

        scheduler.scheduler.shutdown.assert_not_called()

    def test_shutdown_when_running(self, mock_engine):
        """✅ shutdown() stops a running scheduler without waiting."""
        scheduler = SnapshotScheduler(mock_engine)
        scheduler.scheduler = MagicMock(running=True)

        scheduler.shutdown()

        scheduler.scheduler.shutdown.assert_called_once_with(wait=False)
