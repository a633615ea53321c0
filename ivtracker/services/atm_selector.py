"""At-the-money contract selection for a target expiry."""
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ivtracker.models import OptionInstrument
from ivtracker.utils.time import to_millis


MAX_EXPIRY_TOLERANCE = timedelta(days=1)


class ATMNotFound(Exception):
    """No contract exists for the target expiry.

    Indicates a data/calendar mismatch; retrying against the same chain
    cannot succeed.
    """

    def __init__(self, target_expiry: datetime, candidates: int = 0):
        self.target_expiry = target_expiry
        self.candidates = candidates
        super().__init__(
            f"No options found for expiry {target_expiry.isoformat()} "
            f"(searched {candidates} instruments)"
        )


def select_atm(
    chain: Iterable[OptionInstrument],
    target_expiry: datetime,
    spot: float,
    tolerance: Optional[timedelta] = None
) -> OptionInstrument:
    """
    Pick the contract whose strike is closest to spot for a target expiry.

    Args:
        chain: Unexpired option instruments
        target_expiry: Expiry to match
        spot: Current spot price
        tolerance: Allowed expiry mismatch (default: exact match). Must be
            below one day so it can never span two Friday expiries.

    Returns:
        The instrument minimising |strike - spot|. Ties go to the first
        encountered instrument.

    Raises:
        ATMNotFound: If no instrument matches the target expiry
        ValueError: If tolerance is negative or one day or more
    """
    if tolerance is None:
        tolerance = timedelta(0)
    if tolerance < timedelta(0) or tolerance >= MAX_EXPIRY_TOLERANCE:
        raise ValueError(f"Expiry tolerance must be in [0, {MAX_EXPIRY_TOLERANCE}), got {tolerance}")

    target_ms = to_millis(target_expiry)
    tolerance_ms = int(tolerance.total_seconds() * 1000)

    chain = list(chain)
    if tolerance_ms == 0:
        candidates = [opt for opt in chain if opt.expiry_timestamp == target_ms]
    else:
        candidates = [
            opt for opt in chain
            if abs(opt.expiry_timestamp - target_ms) <= tolerance_ms
        ]

    if not candidates:
        raise ATMNotFound(target_expiry, len(chain))

    # min() keeps the first of equal keys
    return min(candidates, key=lambda opt: abs(opt.strike - spot))
