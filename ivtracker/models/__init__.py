"""Domain models package initialization."""
from ivtracker.models.option import OptionInstrument, OptionTicker, OptionQuote, OptionMetrics
from ivtracker.models.snapshot import Snapshot, ReferenceSnapshot
from ivtracker.models.comparison import VolStatus, HorizonComparison, Comparison
from ivtracker.models.history import Trend, HistoryRecord, HistoricalStats

__all__ = [
    "OptionInstrument",
    "OptionTicker",
    "OptionQuote",
    "OptionMetrics",
    "Snapshot",
    "ReferenceSnapshot",
    "VolStatus",
    "HorizonComparison",
    "Comparison",
    "Trend",
    "HistoryRecord",
    "HistoricalStats",
]
