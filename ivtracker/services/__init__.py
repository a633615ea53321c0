"""Services package initialization."""
from ivtracker.services.atm_selector import ATMNotFound, select_atm
from ivtracker.services.snapshot_builder import BuildError, SnapshotBuilder
from ivtracker.services.history_store import HistoryStore
from ivtracker.services.reference_tracker import ReferenceSnapshotTracker
from ivtracker.services.backfill import HistoryBackfiller
from ivtracker.services.engine import NotReady, VolatilityEngine

__all__ = [
    "ATMNotFound",
    "select_atm",
    "BuildError",
    "SnapshotBuilder",
    "HistoryStore",
    "ReferenceSnapshotTracker",
    "HistoryBackfiller",
    "NotReady",
    "VolatilityEngine",
]
