"""Deribit options venue provider implementation."""
import httpx
from typing import Any, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)
import logging
from ivtracker.providers import OptionsMarketProvider, UpstreamUnavailable
from ivtracker.providers.models import VolatilityPoint
from ivtracker.providers.schemas import (
    IndexPricePayload,
    InstrumentPayload,
    TickerPayload,
    VolatilityPointPayload,
)
from ivtracker.models import OptionInstrument, OptionTicker
from ivtracker.core.config import settings


logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class DeribitProvider(OptionsMarketProvider):
    """Deribit public API implementation of the options market provider."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        currency: Optional[str] = None,
        index_name: Optional[str] = None,
        timeout: Optional[float] = None,
        chain_timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.deribit_base_url).rstrip("/")
        self.currency = currency or settings.currency
        self.index_name = index_name or settings.index_name
        self.timeout = timeout or settings.request_timeout_seconds
        self.chain_timeout = chain_timeout or settings.chain_timeout_seconds
        self.client = httpx.AsyncClient(timeout=self.timeout)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _make_request(self, url: str, params: dict, timeout: float) -> Any:
        """Make HTTP request with retry logic for transient failures.

        Retries up to 3 times with exponential backoff for:
        - Timeout errors
        - Connection errors

        Does NOT retry for:
        - HTTP errors (4xx, 5xx) - those need different handling
        """
        response = await self.client.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()

    async def _get_result(self, method: str, params: dict, timeout: Optional[float] = None) -> Any:
        """Call a public Deribit method and unwrap the JSON-RPC result."""
        url = f"{self.base_url}/public/{method}"
        try:
            data = await self._make_request(url, params, timeout or self.timeout)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise UpstreamUnavailable(
                    "Deribit API rate limit exceeded (429). Please wait before making more requests."
                )
            raise UpstreamUnavailable(f"Deribit API error: {str(e)}")
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Deribit API timeout after retries: {str(e)}")
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Deribit API connection error: {str(e)}")
        except ValueError as e:
            raise UpstreamUnavailable(f"Deribit API returned invalid JSON for {method}: {str(e)}")

        if not isinstance(data, dict) or "result" not in data:
            error = data.get("error") if isinstance(data, dict) else None
            raise UpstreamUnavailable(f"Deribit {method} returned no result: {error}")

        return data["result"]

    @staticmethod
    def _validate(schema: Type[PayloadT], payload: Any, method: str) -> PayloadT:
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise UpstreamUnavailable(f"Deribit {method} payload rejected: {e}")

    async def get_index_price(self) -> float:
        """Fetch the current index price for the configured index."""
        result = await self._get_result("get_index_price", {"index_name": self.index_name})
        return self._validate(IndexPricePayload, result, "get_index_price").index_price

    async def get_option_chain(self) -> List[OptionInstrument]:
        """
        Fetch all unexpired options on the configured currency.

        Entries that fail validation are skipped; an empty chain is returned
        as-is and left for ATM selection to reject.
        """
        result = await self._get_result(
            "get_instruments",
            {"currency": self.currency, "kind": "option", "expired": "false"},
            timeout=self.chain_timeout,
        )
        if not isinstance(result, list):
            raise UpstreamUnavailable(f"Deribit get_instruments returned {type(result).__name__}, expected list")

        instruments = []
        skipped = 0
        for item in result:
            try:
                instruments.append(InstrumentPayload.model_validate(item).to_instrument())
            except ValidationError:
                skipped += 1

        if skipped:
            logger.debug(f"Skipped {skipped} malformed instruments")

        return instruments

    async def get_option_ticker(self, instrument_id: str) -> OptionTicker:
        """Fetch bid/ask/mark IV for a single instrument."""
        result = await self._get_result("ticker", {"instrument_name": instrument_id})
        return self._validate(TickerPayload, result, "ticker").to_ticker()

    async def get_volatility_history(self) -> List[VolatilityPoint]:
        """Fetch the historical volatility series for the configured currency."""
        result = await self._get_result("get_historical_volatility", {"currency": self.currency})
        if not isinstance(result, list):
            raise UpstreamUnavailable("Deribit get_historical_volatility returned no series")

        try:
            return [VolatilityPointPayload.from_row(row).to_point() for row in result]
        except ValueError as e:
            raise UpstreamUnavailable(f"Deribit get_historical_volatility payload rejected: {e}")

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
