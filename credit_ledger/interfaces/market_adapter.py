"""Market adapter protocol — the lending market that actually holds funds."""
from typing import Protocol


class MarketAdapter(Protocol):
    """Wrapped-position token of one underlying asset.

    Mutating calls return a status code; ``0`` is success.
    """

    async def supply(self, amount: int) -> int: ...

    async def redeem_underlying(self, amount: int) -> int: ...

    async def borrow(self, amount: int) -> int: ...

    async def repay_borrow(self, amount: int) -> int: ...

    async def borrow_rate_per_step(self) -> int: ...

    async def balance_of_underlying(self, account: str) -> int: ...
