"""Lending market adapter reached through the settlement gateway."""
from __future__ import annotations

import logging
from typing import Any

from ..errors import AdapterCallFailed
from .client import JsonRpcClient

logger = logging.getLogger(__name__)

# Status reported when the gateway could not be reached at all.
TRANSPORT_FAILURE = -1


class RpcMarketAdapter:
    """Wrapped-position token of one market, acting for the facility account."""

    def __init__(self, client: JsonRpcClient, market: str, account: str) -> None:
        self._client = client
        self.market = market
        self.account = account

    async def _mutate(self, method: str, amount: int) -> int:
        try:
            result = await self._client.call(method, [self.market, self.account, str(amount)])
        except RuntimeError as e:
            logger.error("%s on market %s failed: %s", method, self.market, e)
            return TRANSPORT_FAILURE
        return int(_field(result, "status", TRANSPORT_FAILURE))

    async def _read(self, method: str, params: list[Any], key: str) -> int:
        try:
            result = await self._client.call(method, params)
        except RuntimeError as e:
            raise AdapterCallFailed(f"{method} on market {self.market} failed: {e}") from e
        value = _field(result, key, None)
        if value is None:
            raise AdapterCallFailed(f"{method} on market {self.market} returned no '{key}'")
        return int(value)

    async def supply(self, amount: int) -> int:
        return await self._mutate("market_supply", amount)

    async def redeem_underlying(self, amount: int) -> int:
        return await self._mutate("market_redeemUnderlying", amount)

    async def borrow(self, amount: int) -> int:
        return await self._mutate("market_borrow", amount)

    async def repay_borrow(self, amount: int) -> int:
        return await self._mutate("market_repayBorrow", amount)

    async def borrow_rate_per_step(self) -> int:
        return await self._read("market_borrowRatePerStep", [self.market], "rate")

    async def balance_of_underlying(self, account: str) -> int:
        return await self._read(
            "market_balanceOfUnderlying", [self.market, account], "balance"
        )


def _field(result: Any, key: str, default: Any) -> Any:
    if isinstance(result, dict):
        return result.get(key, default)
    return default
