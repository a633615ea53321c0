"""Implied move model: annualized IV to dollar moves over a horizon."""
import numpy as np
from datetime import datetime

from ivtracker.models import OptionQuote, OptionMetrics
from ivtracker.utils.time import MS_PER_HOUR, days_between, format_expiry, to_millis


DAYS_PER_YEAR = 365


def implied_move(spot: float, atm_iv: float, horizon_years: float) -> float:
    """
    Calculate the expected absolute move over a horizon (square-root-of-time rule).

    Formula:
    move = spot * (IV / 100) * sqrt(T)

    Args:
        spot: Underlying price
        atm_iv: ATM implied volatility (percent, annualized, e.g. 50 for 50%)
        horizon_years: Horizon in years; non-positive horizons give 0.0

    Returns:
        Implied move in price units
    """
    if horizon_years <= 0:
        return 0.0
    return float(spot * (atm_iv / 100.0) * np.sqrt(horizon_years))


def implied_daily_move(spot: float, atm_iv: float) -> float:
    """
    Calculate the 1-day-equivalent implied move.

    Formula:
    daily = spot * (IV / 100) / sqrt(365)

    Normalized directly from annualized IV, so it does not depend on the
    contract's own time to expiry. This is the figure every surprise ratio
    is measured against.
    """
    return float(spot * (atm_iv / 100.0) / np.sqrt(DAYS_PER_YEAR))


def compute_option_metrics(quote: OptionQuote, spot: float, now: datetime) -> OptionMetrics:
    """
    Derive implied move figures for one option leg.

    Args:
        quote: Option quote with bid/ask/mark IV
        spot: Snapshot spot price
        now: As-of time for time-to-expiry

    Returns:
        OptionMetrics for the leg. Past expiries yield non-positive
        time-to-expiry and a zero implied move to expiry.
    """
    now_ms = to_millis(now)
    atm_iv = quote.atm_iv

    hours_to_expiry = (quote.expiry_timestamp - now_ms) / MS_PER_HOUR
    days_to_expiry = days_between(now_ms, quote.expiry_timestamp)
    years_to_expiry = days_to_expiry / DAYS_PER_YEAR

    move = implied_move(spot, atm_iv, years_to_expiry)
    daily = implied_daily_move(spot, atm_iv)

    return OptionMetrics(
        instrument_id=quote.instrument_id,
        expiry=format_expiry(quote.expiry_timestamp),
        expiry_timestamp=quote.expiry_timestamp,
        strike=quote.strike,
        bid_iv=quote.bid_iv,
        ask_iv=quote.ask_iv,
        mark_iv=quote.mark_iv,
        atm_iv=atm_iv,
        underlying_price=spot,
        hours_to_expiry=hours_to_expiry,
        days_to_expiry=days_to_expiry,
        implied_move=move,
        implied_move_percent=(move / spot) * 100 if spot else 0.0,
        implied_daily_move=daily,
        implied_daily_move_percent=(daily / spot) * 100 if spot else 0.0,
    )
