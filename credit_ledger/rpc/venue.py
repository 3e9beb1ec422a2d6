"""Swap venue reached through the settlement gateway."""
from __future__ import annotations

import logging

from ..errors import AdapterCallFailed
from .client import JsonRpcClient

logger = logging.getLogger(__name__)


class RpcSwapVenue:
    def __init__(self, client: JsonRpcClient, router: str) -> None:
        self._client = client
        self.router = router

    async def swap(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> list[int]:
        """Exact-input swap along ``path``; returns the amount at every hop."""
        try:
            result = await self._client.call(
                "venue_swapExactTokensForTokens",
                [
                    self.router,
                    list(path),
                    str(amount_in),
                    str(min_amount_out),
                    recipient,
                    deadline,
                ],
            )
        except RuntimeError as e:
            raise AdapterCallFailed(f"Swap along {path} failed: {e}") from e

        amounts = result.get("amounts", []) if isinstance(result, dict) else []
        logger.info("Swapped %d along %s → %s", amount_in, "→".join(path), amounts)
        return [int(a) for a in amounts]
