"""Integration tests for the JSON-RPC client — endpoint fallback and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from credit_ledger.config import RpcConfig
from credit_ledger.rpc.client import JsonRpcClient


@pytest.fixture()
def client() -> JsonRpcClient:
    return JsonRpcClient(
        RpcConfig(
            endpoints=(
                "https://rpc1.example.com",
                "https://rpc2.example.com",
                "https://rpc3.example.com",
            ),
            timeout=5,
        )
    )


def _mock_session(response_data: dict | None = None, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_response = AsyncMock()
    mock_response.json = AsyncMock(return_value=response_data or {})
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)

    return mock_session


class TestCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": {"status": 0}})

        with patch("credit_ledger.rpc.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("credit_ledger.rpc.client.aiohttp.TCPConnector"):
                result = await client.call("market_supply", ["0xm", "0xa", "1"])

        assert result == {"status": 0}
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "market_supply"
        assert payload["params"] == ["0xm", "0xa", "1"]
        assert mock_session.post.call_args[0][0] == "https://rpc1.example.com"

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "result": "0x10"})

        with patch("credit_ledger.rpc.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("credit_ledger.rpc.client.aiohttp.TCPConnector"):
                await client.call("chain_blockNumber", [])
                await client.call("chain_blockNumber", [])

        ids = [c.kwargs["json"]["id"] for c in mock_session.post.call_args_list]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "error": {"code": -32000, "message": "bad"}}
        )

        with patch("credit_ledger.rpc.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("credit_ledger.rpc.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="All RPC endpoints failed"):
                    await client.call("market_supply", [])

        assert mock_session.post.call_count == 3

    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, client: JsonRpcClient) -> None:
        """When first endpoint fails, should try the next one."""
        call_count = 0

        success_response = AsyncMock()
        success_response.json = AsyncMock(
            return_value={"jsonrpc": "2.0", "result": {"ok": True}}
        )
        success_response.__aenter__ = AsyncMock(return_value=success_response)
        success_response.__aexit__ = AsyncMock(return_value=None)

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("first endpoint down")
            return success_response

        mock_session = AsyncMock()
        mock_session.post = MagicMock(side_effect=side_effect)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch("credit_ledger.rpc.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("credit_ledger.rpc.client.aiohttp.TCPConnector"):
                result = await client.call("market_supply", [])

        assert result == {"ok": True}
        assert client.current_rpc_index == 1

    @pytest.mark.asyncio
    async def test_all_endpoints_fail(self, client: JsonRpcClient) -> None:
        mock_session = _mock_session(error=ConnectionError("down"))

        with patch("credit_ledger.rpc.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("credit_ledger.rpc.client.aiohttp.TCPConnector"):
                with pytest.raises(RuntimeError, match="All RPC endpoints failed"):
                    await client.call("market_supply", [])

    @pytest.mark.asyncio
    async def test_no_endpoints(self) -> None:
        client = JsonRpcClient(RpcConfig(endpoints=()))
        with pytest.raises(RuntimeError, match="No RPC endpoints configured"):
            await client.call("market_supply", [])
