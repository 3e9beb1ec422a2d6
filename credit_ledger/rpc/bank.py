"""Token transfers out of the facility through the settlement gateway."""
from __future__ import annotations

import logging

from .client import JsonRpcClient
from .market import TRANSPORT_FAILURE

logger = logging.getLogger(__name__)


class RpcTokenBank:
    def __init__(self, client: JsonRpcClient, tokens: dict[str, str], sender: str) -> None:
        self._client = client
        self.tokens = dict(tokens)
        self.sender = sender

    async def transfer(self, asset: str, recipient: str, amount: int) -> int:
        token = self.tokens.get(asset, asset)
        try:
            result = await self._client.call(
                "token_transfer", [token, self.sender, recipient, str(amount)]
            )
        except RuntimeError as e:
            logger.error("Transfer of %d %s to %s failed: %s", amount, asset, recipient, e)
            return TRANSPORT_FAILURE
        if isinstance(result, dict):
            return int(result.get("status", TRANSPORT_FAILURE))
        return TRANSPORT_FAILURE
