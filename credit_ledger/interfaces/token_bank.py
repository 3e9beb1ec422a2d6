"""Token bank protocol — moves tokens out to external wallets."""
from typing import Protocol


class TokenBank(Protocol):
    async def transfer(self, asset: str, recipient: str, amount: int) -> int: ...
