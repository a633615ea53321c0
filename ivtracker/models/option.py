"""Option contract and derived implied-move models."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OptionInstrument:
    """Option contract as listed in the unexpired chain."""
    instrument_id: str
    strike: float
    expiry_timestamp: int  # UTC epoch millis
    option_type: Optional[str] = None  # "call" or "put"


@dataclass(frozen=True)
class OptionTicker:
    """Implied volatility quote for one instrument (percent, annualized)."""
    bid_iv: Optional[float]
    ask_iv: Optional[float]
    mark_iv: Optional[float]


@dataclass(frozen=True)
class OptionQuote:
    """Observed option contract with its implied volatilities."""
    instrument_id: str
    strike: float
    expiry_timestamp: int
    bid_iv: float
    ask_iv: float
    mark_iv: float

    def __post_init__(self):
        if self.bid_iv < 0 or self.ask_iv < 0:
            raise ValueError(
                f"bid/ask IV must be non-negative for {self.instrument_id}: "
                f"bid={self.bid_iv}, ask={self.ask_iv}"
            )

    @classmethod
    def from_ticker(cls, instrument: OptionInstrument, ticker: OptionTicker) -> "OptionQuote":
        """Combine a chain entry with its ticker; missing IVs are filled per venue convention."""
        bid_iv = ticker.bid_iv or 0.0
        ask_iv = ticker.ask_iv or 0.0
        mark_iv = ticker.mark_iv or (bid_iv + ask_iv) / 2
        return cls(
            instrument_id=instrument.instrument_id,
            strike=instrument.strike,
            expiry_timestamp=instrument.expiry_timestamp,
            bid_iv=bid_iv,
            ask_iv=ask_iv,
            mark_iv=mark_iv,
        )

    @property
    def atm_iv(self) -> float:
        """Mid of bid/ask IV when both sides are quoted, else mark IV."""
        if self.bid_iv > 0 and self.ask_iv > 0:
            return (self.bid_iv + self.ask_iv) / 2
        return self.mark_iv


@dataclass(frozen=True)
class OptionMetrics:
    """Implied move figures for one option leg at snapshot time."""
    instrument_id: str
    expiry: str  # "YYYY-MM-DD HH:MM" UTC
    expiry_timestamp: int
    strike: float
    bid_iv: float
    ask_iv: float
    mark_iv: float
    atm_iv: float
    underlying_price: float
    hours_to_expiry: float
    days_to_expiry: float
    implied_move: float
    implied_move_percent: float
    implied_daily_move: float
    implied_daily_move_percent: float
