"""Bounded, date-keyed history of daily surprise ratios."""
import numpy as np
from typing import List, Sequence

from ivtracker.models import HistoricalStats, HistoryRecord, Trend


MAX_RECORDS = 30
MIN_RECORDS_FOR_STATS = 3

# Recent 3 days vs the 3 before them. Preserved for compatibility; the
# window and threshold were never derived for any particular instrument.
TREND_WINDOW = 3
TREND_THRESHOLD = 0.15


def detect_trend(values: Sequence[float]) -> Trend:
    """
    Compare the mean of the last TREND_WINDOW values with the window before it.

    Returns FLAT when fewer than 2 * TREND_WINDOW values are available.
    """
    if len(values) < 2 * TREND_WINDOW:
        return Trend.FLAT

    recent = np.mean(values[-TREND_WINDOW:])
    older = np.mean(values[-2 * TREND_WINDOW:-TREND_WINDOW])
    diff = recent - older

    if diff > TREND_THRESHOLD:
        return Trend.UP
    if diff < -TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.FLAT


class HistoryStore:
    """In-memory ring of at most max_records daily records, oldest first."""

    def __init__(self, max_records: int = MAX_RECORDS):
        self.max_records = max_records
        self._records: List[HistoryRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> List[HistoryRecord]:
        """Copy of retained records, oldest first."""
        return list(self._records)

    def upsert(
        self,
        date: str,
        weekly_surprise: float,
        monthly_surprise: float,
        price: float
    ) -> HistoryRecord:
        """
        Record surprise ratios for a date.

        A same-date write replaces the existing record in place; otherwise
        the record is appended and the oldest records are evicted beyond
        max_records.
        """
        record = HistoryRecord(
            date=date,
            weekly_surprise=weekly_surprise,
            monthly_surprise=monthly_surprise,
            reference_price=price,
        )

        for i, existing in enumerate(self._records):
            if existing.date == date:
                self._records[i] = record
                return record

        self._records.append(record)
        while len(self._records) > self.max_records:
            self._records.pop(0)

        return record

    def stats(self) -> HistoricalStats:
        """
        Averages and trends over retained records.

        Fewer than MIN_RECORDS_FOR_STATS records returns the insufficient-data
        sentinel (days_tracked == 0).
        """
        if len(self._records) < MIN_RECORDS_FOR_STATS:
            return HistoricalStats.insufficient()

        weekly = [r.weekly_surprise for r in self._records]
        monthly = [r.monthly_surprise for r in self._records]

        return HistoricalStats(
            weekly_avg_surprise=float(np.mean(weekly)),
            weekly_trend=detect_trend(weekly),
            monthly_avg_surprise=float(np.mean(monthly)),
            monthly_trend=detect_trend(monthly),
            days_tracked=len(self._records),
        )
