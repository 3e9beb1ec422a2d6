"""Block height as the ledger's step counter."""
from __future__ import annotations

from .client import JsonRpcClient


class RpcStepClock:
    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client

    async def current_step(self) -> int:
        result = await self._client.call("chain_blockNumber", [])
        if isinstance(result, str) and result.startswith("0x"):
            return int(result, 16)
        return int(result)
