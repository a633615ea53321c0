"""Calendar-anchored weekly/monthly reference snapshots."""
import logging
from datetime import date
from typing import List, Optional

from ivtracker.models import ReferenceSnapshot, Snapshot
from ivtracker.services.expiry import FRIDAY


logger = logging.getLogger(__name__)


class ReferenceSnapshotTracker:
    """Latch reference points every Friday (weekly) and every 1st of month (monthly)."""

    def __init__(self):
        self.weekly: Optional[ReferenceSnapshot] = None
        self.monthly: Optional[ReferenceSnapshot] = None

    def on_new_snapshot(self, snapshot: Snapshot, today: date) -> List[str]:
        """
        Latch references whose calendar boundary falls on today.

        Both checks are independent. A reference already latched for
        snapshot.date is left untouched.

        Args:
            snapshot: Current published snapshot
            today: Current UTC calendar date

        Returns:
            Names of the references latched by this call ("weekly", "monthly")
        """
        latched = []

        if today.weekday() == FRIDAY and (self.weekly is None or self.weekly.date != snapshot.date):
            self.weekly = ReferenceSnapshot.from_snapshot(snapshot)
            latched.append("weekly")
            logger.info(f"Set weekly reference snapshot: {snapshot.date} @ ${snapshot.spot_price:,.2f}")

        if today.day == 1 and (self.monthly is None or self.monthly.date != snapshot.date):
            self.monthly = ReferenceSnapshot.from_snapshot(snapshot)
            latched.append("monthly")
            logger.info(f"Set monthly reference snapshot: {snapshot.date} @ ${snapshot.spot_price:,.2f}")

        return latched
