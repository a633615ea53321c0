"""Response schemas validating upstream JSON payloads at the I/O boundary."""
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ivtracker.models import OptionInstrument, OptionTicker
from ivtracker.providers.models import DailyKline, VolatilityPoint


class IndexPricePayload(BaseModel):
    """Deribit get_index_price result."""
    model_config = ConfigDict(extra="ignore")

    index_price: float = Field(gt=0)


class InstrumentPayload(BaseModel):
    """Deribit get_instruments result entry."""
    model_config = ConfigDict(extra="ignore")

    instrument_name: str
    strike: float = Field(gt=0)
    expiration_timestamp: int
    option_type: Optional[str] = None

    def to_instrument(self) -> OptionInstrument:
        return OptionInstrument(
            instrument_id=self.instrument_name,
            strike=self.strike,
            expiry_timestamp=self.expiration_timestamp,
            option_type=self.option_type,
        )


class TickerPayload(BaseModel):
    """Deribit ticker result (IVs in percent)."""
    model_config = ConfigDict(extra="ignore")

    bid_iv: Optional[float] = Field(default=None, ge=0)
    ask_iv: Optional[float] = Field(default=None, ge=0)
    mark_iv: Optional[float] = Field(default=None, ge=0)

    def to_ticker(self) -> OptionTicker:
        return OptionTicker(bid_iv=self.bid_iv, ask_iv=self.ask_iv, mark_iv=self.mark_iv)


class VolatilityPointPayload(BaseModel):
    """Deribit get_historical_volatility row: [timestamp, volatility]."""
    timestamp: int
    volatility: float = Field(ge=0)

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "VolatilityPointPayload":
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            raise ValueError(f"Malformed volatility row: {row!r}")
        return cls.model_validate({"timestamp": row[0], "volatility": row[1]})

    def to_point(self) -> VolatilityPoint:
        return VolatilityPoint(timestamp=self.timestamp, volatility=self.volatility)


class KlinePayload(BaseModel):
    """Binance kline row: [open_time, open, high, low, close, volume, ...] (prices as strings)."""
    open_time: int
    open: float
    high: float
    low: float
    close: float

    @model_validator(mode='after')
    def validate_range(self) -> 'KlinePayload':
        """High must not be below low."""
        if self.high < self.low:
            raise ValueError(f"kline high {self.high} below low {self.low}")
        return self

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "KlinePayload":
        if not isinstance(row, (list, tuple)) or len(row) < 5:
            raise ValueError(f"Malformed kline row: {row!r}")
        return cls.model_validate({
            "open_time": row[0],
            "open": row[1],
            "high": row[2],
            "low": row[3],
            "close": row[4],
        })

    def to_kline(self) -> DailyKline:
        return DailyKline(
            open_time=self.open_time,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
        )
