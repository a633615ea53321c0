"""Unit tests for DeribitProvider.

This module tests the Deribit public API integration including JSON-RPC
result unwrapping, payload validation, and error mapping.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from ivtracker.providers.deribit import DeribitProvider
from ivtracker.providers import UpstreamUnavailable


def rpc_response(result):
    """Mock a successful JSON-RPC response."""
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = {"jsonrpc": "2.0", "result": result}
    return resp


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_client():
    """Mock httpx AsyncClient."""
    with patch("httpx.AsyncClient") as mock:
        client_instance = AsyncMock()
        mock.return_value = client_instance
        yield client_instance


@pytest.fixture
def provider(mock_client):
    """Create DeribitProvider instance."""
    return DeribitProvider(base_url="https://test.deribit.com/api/v2", currency="BTC", index_name="btc_usd")


# ============================================================================
# Tests for get_index_price
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestGetIndexPrice:
    """Test get_index_price method."""

    async def test_success(self, provider, mock_client):
        """✅ Success → index price float."""
        mock_client.get.return_value = rpc_response({"index_price": 42100.5, "estimated_delivery_price": 42100.5})

        price = await provider.get_index_price()

        assert price == 42100.5
        args, kwargs = mock_client.get.call_args
        assert args[0] == "https://test.deribit.com/api/v2/public/get_index_price"
        assert kwargs["params"] == {"index_name": "btc_usd"}
        assert kwargs["timeout"] == provider.timeout

    async def test_missing_result(self, provider, mock_client):
        """✅ JSON-RPC error envelope → UpstreamUnavailable."""
        resp = MagicMock()
        resp.json.return_value = {"jsonrpc": "2.0", "error": {"code": 10001, "message": "error"}}
        mock_client.get.return_value = resp

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "returned no result" in str(exc.value)

    async def test_non_positive_price(self, provider, mock_client):
        """✅ Zero index price → payload rejected."""
        mock_client.get.return_value = rpc_response({"index_price": 0})

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "payload rejected" in str(exc.value)

    async def test_invalid_json(self, provider, mock_client):
        """✅ Unparseable body → UpstreamUnavailable."""
        resp = MagicMock()
        resp.json.side_effect = ValueError("Expecting value")
        mock_client.get.return_value = resp

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "invalid JSON" in str(exc.value)

    async def test_http_error(self, provider, mock_client):
        """✅ HTTP error → UpstreamUnavailable."""
        mock_client.get.side_effect = httpx.HTTPError("Connection failed")

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "Deribit API connection error" in str(exc.value)

    async def test_429_error(self, provider, mock_client):
        """✅ 429 → rate limit message."""
        error_resp = MagicMock()
        error_resp.status_code = 429
        mock_client.get.side_effect = httpx.HTTPStatusError("429 Too Many Requests", request=None, response=error_resp)

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "rate limit exceeded (429)" in str(exc.value)

    async def test_500_error(self, provider, mock_client):
        """✅ 5xx → generic API error, not retried."""
        error_resp = MagicMock()
        error_resp.status_code = 500
        mock_client.get.side_effect = httpx.HTTPStatusError("500 Server Error", request=None, response=error_resp)

        with pytest.raises(UpstreamUnavailable) as exc:
            await provider.get_index_price()

        assert "Deribit API error" in str(exc.value)
        assert mock_client.get.call_count == 1


# ============================================================================
# Tests for get_option_chain
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestGetOptionChain:
    """Test get_option_chain method."""

    async def test_success(self, provider, mock_client):
        """✅ Instruments → OptionInstrument list."""
        mock_client.get.return_value = rpc_response([
            {
                "instrument_name": "BTC-17JAN25-42000-C",
                "strike": 42000.0,
                "expiration_timestamp": 1737100800000,
                "option_type": "call",
                "kind": "option",
            },
            {
                "instrument_name": "BTC-17JAN25-42000-P",
                "strike": 42000.0,
                "expiration_timestamp": 1737100800000,
                "option_type": "put",
            },
        ])

        chain = await provider.get_option_chain()

        assert len(chain) == 2
        assert chain[0].instrument_id == "BTC-17JAN25-42000-C"
        assert chain[0].strike == 42000.0
        assert chain[0].expiry_timestamp == 1737100800000
        assert chain[1].option_type == "put"

        args, kwargs = mock_client.get.call_args
        assert args[0].endswith("/public/get_instruments")
        assert kwargs["params"] == {"currency": "BTC", "kind": "option", "expired": "false"}
        assert kwargs["timeout"] == provider.chain_timeout

    async def test_malformed_entries_skipped(self, provider, mock_client):
        """✅ Entries missing strike/expiry are skipped."""
        mock_client.get.return_value = rpc_response([
            {"instrument_name": "BTC-17JAN25-42000-C", "strike": 42000.0, "expiration_timestamp": 1737100800000},
            {"instrument_name": "BTC-BROKEN"},
            {"instrument_name": "BTC-NEG", "strike": -1, "expiration_timestamp": 1737100800000},
        ])

        chain = await provider.get_option_chain()

        assert [i.instrument_id for i in chain] == ["BTC-17JAN25-42000-C"]

    async def test_empty_chain(self, provider, mock_client):
        """✅ Empty result → empty list."""
        mock_client.get.return_value = rpc_response([])
        assert await provider.get_option_chain() == []

    async def test_non_list_result(self, provider, mock_client):
        """✅ Non-list result → UpstreamUnavailable."""
        mock_client.get.return_value = rpc_response({"unexpected": True})

        with pytest.raises(UpstreamUnavailable):
            await provider.get_option_chain()


# ============================================================================
# Tests for get_option_ticker / get_volatility_history
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestGetOptionTicker:
    """Test get_option_ticker method."""

    async def test_success(self, provider, mock_client):
        """✅ Ticker → OptionTicker with IVs."""
        mock_client.get.return_value = rpc_response({
            "instrument_name": "BTC-17JAN25-42000-C",
            "bid_iv": 48.5,
            "ask_iv": 51.5,
            "mark_iv": 50.0,
            "best_bid_price": 0.02,
        })

        ticker = await provider.get_option_ticker("BTC-17JAN25-42000-C")

        assert ticker.bid_iv == 48.5
        assert ticker.ask_iv == 51.5
        assert ticker.mark_iv == 50.0
        assert mock_client.get.call_args.kwargs["params"] == {"instrument_name": "BTC-17JAN25-42000-C"}

    async def test_missing_ivs(self, provider, mock_client):
        """✅ Missing IV fields → None."""
        mock_client.get.return_value = rpc_response({"mark_iv": 52.0})

        ticker = await provider.get_option_ticker("BTC-17JAN25-42000-C")

        assert ticker.bid_iv is None
        assert ticker.ask_iv is None
        assert ticker.mark_iv == 52.0

    async def test_negative_iv_rejected(self, provider, mock_client):
        """✅ Negative IV → payload rejected."""
        mock_client.get.return_value = rpc_response({"bid_iv": -3.0, "ask_iv": 50.0, "mark_iv": 50.0})

        with pytest.raises(UpstreamUnavailable):
            await provider.get_option_ticker("BTC-17JAN25-42000-C")


@pytest.mark.unit
@pytest.mark.asyncio
class TestGetVolatilityHistory:
    """Test get_volatility_history method."""

    async def test_success(self, provider, mock_client):
        """✅ [timestamp, vol] rows → VolatilityPoint list."""
        mock_client.get.return_value = rpc_response([
            [1736899200000, 48.2],
            [1736902800000, 49.1],
        ])

        series = await provider.get_volatility_history()

        assert len(series) == 2
        assert series[0].timestamp == 1736899200000
        assert series[1].volatility == 49.1
        assert mock_client.get.call_args.kwargs["params"] == {"currency": "BTC"}

    async def test_malformed_row(self, provider, mock_client):
        """✅ Short row → UpstreamUnavailable."""
        mock_client.get.return_value = rpc_response([[1736899200000]])

        with pytest.raises(UpstreamUnavailable):
            await provider.get_volatility_history()


@pytest.mark.unit
@pytest.mark.asyncio
class TestClose:
    """Test close method."""

    async def test_close(self, provider, mock_client):
        """✅ close() closes the HTTP client."""
        await provider.close()
        mock_client.aclose.assert_awaited_once()
