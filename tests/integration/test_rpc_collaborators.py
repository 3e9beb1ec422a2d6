"""Integration tests for the RPC-backed market, venue, bank and clock."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from credit_ledger.errors import AdapterCallFailed
from credit_ledger.rpc import RpcMarketAdapter, RpcStepClock, RpcSwapVenue, RpcTokenBank
from credit_ledger.rpc.market import TRANSPORT_FAILURE


@pytest.fixture()
def client() -> MagicMock:
    mock = MagicMock()
    mock.call = AsyncMock()
    return mock


class TestRpcMarketAdapter:
    @pytest.mark.asyncio
    async def test_supply_reports_status(self, client: MagicMock) -> None:
        client.call.return_value = {"status": 0}
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")

        assert await market.supply(10**18) == 0
        client.call.assert_awaited_once_with(
            "market_supply", ["0xcUSDD", "0xFACILITY", str(10**18)]
        )

    @pytest.mark.asyncio
    async def test_nonzero_status_passed_through(self, client: MagicMock) -> None:
        client.call.return_value = {"status": 14}
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        assert await market.redeem_underlying(5) == 14

    @pytest.mark.asyncio
    async def test_transport_failure_is_status(self, client: MagicMock) -> None:
        client.call.side_effect = RuntimeError("All RPC endpoints failed")
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        assert await market.borrow(5) == TRANSPORT_FAILURE

    @pytest.mark.asyncio
    async def test_malformed_result_is_failure(self, client: MagicMock) -> None:
        client.call.return_value = None
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        assert await market.repay_borrow(5) == TRANSPORT_FAILURE

    @pytest.mark.asyncio
    async def test_reads_rate(self, client: MagicMock) -> None:
        client.call.return_value = {"rate": "1000000000"}
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        assert await market.borrow_rate_per_step() == 10**9
        client.call.assert_awaited_once_with("market_borrowRatePerStep", ["0xcUSDD"])

    @pytest.mark.asyncio
    async def test_reads_balance(self, client: MagicMock) -> None:
        client.call.return_value = {"balance": "42"}
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        assert await market.balance_of_underlying("0xFACILITY") == 42

    @pytest.mark.asyncio
    async def test_failed_read_raises(self, client: MagicMock) -> None:
        client.call.side_effect = RuntimeError("down")
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        with pytest.raises(AdapterCallFailed):
            await market.borrow_rate_per_step()

    @pytest.mark.asyncio
    async def test_missing_field_raises(self, client: MagicMock) -> None:
        client.call.return_value = {}
        market = RpcMarketAdapter(client, "0xcUSDD", "0xFACILITY")
        with pytest.raises(AdapterCallFailed, match="no 'balance'"):
            await market.balance_of_underlying("0xFACILITY")


class TestRpcSwapVenue:
    @pytest.mark.asyncio
    async def test_returns_hop_amounts(self, client: MagicMock) -> None:
        client.call.return_value = {"amounts": ["100", "99"]}
        venue = RpcSwapVenue(client, "0xROUTER")

        amounts = await venue.swap(["USDT", "USDD"], 100, 95, "fee-router", 120)

        assert amounts == [100, 99]
        method, params = client.call.call_args[0]
        assert method == "venue_swapExactTokensForTokens"
        assert params == ["0xROUTER", ["USDT", "USDD"], "100", "95", "fee-router", 120]

    @pytest.mark.asyncio
    async def test_failure_raises(self, client: MagicMock) -> None:
        client.call.side_effect = RuntimeError("down")
        venue = RpcSwapVenue(client, "0xROUTER")
        with pytest.raises(AdapterCallFailed):
            await venue.swap(["USDT", "USDD"], 100, 95, "fee-router", 120)


class TestRpcTokenBank:
    @pytest.mark.asyncio
    async def test_transfer_maps_token(self, client: MagicMock) -> None:
        client.call.return_value = {"status": 0}
        bank = RpcTokenBank(client, tokens={"USDD": "0xUSDD"}, sender="0xFACILITY")

        assert await bank.transfer("USDD", "0xALICE", 7) == 0
        client.call.assert_awaited_once_with(
            "token_transfer", ["0xUSDD", "0xFACILITY", "0xALICE", "7"]
        )

    @pytest.mark.asyncio
    async def test_transport_failure(self, client: MagicMock) -> None:
        client.call.side_effect = RuntimeError("down")
        bank = RpcTokenBank(client, tokens={}, sender="0xFACILITY")
        assert await bank.transfer("USDD", "0xALICE", 7) == TRANSPORT_FAILURE


class TestRpcStepClock:
    @pytest.mark.asyncio
    async def test_hex_block_number(self, client: MagicMock) -> None:
        client.call.return_value = "0x1a"
        assert await RpcStepClock(client).current_step() == 26

    @pytest.mark.asyncio
    async def test_int_block_number(self, client: MagicMock) -> None:
        client.call.return_value = 99
        assert await RpcStepClock(client).current_step() == 99
