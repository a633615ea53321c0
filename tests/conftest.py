"""Shared pytest fixtures for volatility engine tests."""
import pytest
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

from ivtracker.models import OptionInstrument, OptionQuote, OptionTicker, Snapshot
from ivtracker.providers import OptionsMarketProvider, PriceProvider
from ivtracker.providers.models import DailyKline
from ivtracker.services.implied_move import compute_option_metrics
from ivtracker.utils.time import start_of_utc_day, to_millis, utc_date_str


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


# Wednesday; weekly expiry Fri 2025-01-17, monthly Fri 2025-01-31
DEFAULT_NOW = utc(2025, 1, 15, 12)
WEEKLY_EXPIRY = utc(2025, 1, 17, 8)
MONTHLY_EXPIRY = utc(2025, 1, 31, 8)


def instrument_name(expiry: datetime, strike: float, option_type: str = "call") -> str:
    return f"BTC-{expiry.strftime('%d%b%y').upper()}-{int(strike)}-{'C' if option_type == 'call' else 'P'}"


def create_instrument(
    strike: float,
    expiry: datetime = WEEKLY_EXPIRY,
    option_type: str = "call",
    instrument_id: Optional[str] = None
) -> OptionInstrument:
    """Factory function to create OptionInstrument instances for testing."""
    return OptionInstrument(
        instrument_id=instrument_id or instrument_name(expiry, strike, option_type),
        strike=strike,
        expiry_timestamp=to_millis(expiry),
        option_type=option_type,
    )


def create_chain(
    expiries: List[datetime] = None,
    strikes: List[float] = None
) -> List[OptionInstrument]:
    """Factory for a chain with calls and puts at every strike/expiry."""
    if expiries is None:
        expiries = [WEEKLY_EXPIRY, MONTHLY_EXPIRY]
    if strikes is None:
        strikes = [40000.0, 41000.0, 42000.0, 43000.0, 44000.0]

    return [
        create_instrument(strike, expiry, option_type)
        for expiry in expiries
        for strike in strikes
        for option_type in ("call", "put")
    ]


def create_quote(
    strike: float = 42000.0,
    expiry: datetime = WEEKLY_EXPIRY,
    bid_iv: float = 50.0,
    ask_iv: float = 50.0,
    mark_iv: float = 50.0
) -> OptionQuote:
    """Factory function to create OptionQuote instances for testing."""
    return OptionQuote(
        instrument_id=instrument_name(expiry, strike),
        strike=strike,
        expiry_timestamp=to_millis(expiry),
        bid_iv=bid_iv,
        ask_iv=ask_iv,
        mark_iv=mark_iv,
    )


def create_snapshot(
    spot: float = 42000.0,
    weekly_iv: float = 50.0,
    monthly_iv: float = 50.0,
    now: datetime = DEFAULT_NOW
) -> Snapshot:
    """Factory for a snapshot built the same way SnapshotBuilder builds one."""
    day_start = start_of_utc_day(now)
    return Snapshot(
        date=utc_date_str(day_start),
        timestamp=to_millis(day_start),
        spot_price=spot,
        weekly_option=compute_option_metrics(
            create_quote(spot, WEEKLY_EXPIRY, weekly_iv, weekly_iv, weekly_iv), spot, now
        ),
        monthly_option=compute_option_metrics(
            create_quote(spot, MONTHLY_EXPIRY, monthly_iv, monthly_iv, monthly_iv), spot, now
        ),
    )


def create_kline(
    day_start: datetime = DEFAULT_NOW,
    open_price: float = 42000.0,
    high: float = 42800.0,
    low: float = 41700.0,
    close: float = 42500.0
) -> DailyKline:
    """Factory function to create DailyKline instances for testing."""
    return DailyKline(
        open_time=to_millis(start_of_utc_day(day_start)),
        open=open_price,
        high=high,
        low=low,
        close=close,
    )


def ticker_lookup(tickers: Dict[str, OptionTicker], default: Optional[OptionTicker] = None):
    """Build an async side_effect resolving tickers by instrument id."""
    if default is None:
        default = OptionTicker(bid_iv=50.0, ask_iv=50.0, mark_iv=50.0)

    async def _lookup(instrument_id: str) -> OptionTicker:
        return tickers.get(instrument_id, default)

    return _lookup


@pytest.fixture
def options_provider():
    """Mock options venue returning a default chain around 42,100 spot."""
    provider = AsyncMock(spec=OptionsMarketProvider)
    provider.get_index_price.return_value = 42100.0
    provider.get_option_chain.return_value = create_chain()
    provider.get_option_ticker.side_effect = ticker_lookup({})
    provider.get_volatility_history.return_value = []
    return provider


@pytest.fixture
def price_provider():
    """Mock daily kline source."""
    provider = AsyncMock(spec=PriceProvider)
    provider.get_daily_kline.return_value = create_kline()
    return provider


@pytest.fixture
def sample_snapshot():
    """Snapshot at 42,000 spot with 50% IV on both legs."""
    return create_snapshot()
