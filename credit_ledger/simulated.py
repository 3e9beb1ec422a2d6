"""In-memory collaborators — test doubles for every external contract."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .units import WAD

CallHook = Callable[[str], Awaitable[None]]


class InMemoryMarket:
    """Lending market for one underlying asset, held by a single account.

    ``fail_status`` makes every mutating call return that status. ``hook`` is
    awaited on every call, which lets tests call back into the ledger while
    one of its operations is outstanding.
    """

    def __init__(
        self,
        rate_per_step: int = 0,
        account: str = "facility",
        hook: CallHook | None = None,
    ) -> None:
        self.rate_per_step = rate_per_step
        self.account = account
        self.hook = hook
        self.fail_status = 0
        self.supplied = 0
        self.borrowed = 0
        self.calls: list[tuple[str, int]] = []

    async def _call(self, name: str, amount: int) -> int:
        self.calls.append((name, amount))
        if self.hook is not None:
            await self.hook(name)
        return self.fail_status

    async def supply(self, amount: int) -> int:
        status = await self._call("supply", amount)
        if status == 0:
            self.supplied += amount
        return status

    async def redeem_underlying(self, amount: int) -> int:
        status = await self._call("redeem_underlying", amount)
        if status != 0:
            return status
        if amount > self.supplied:
            return 1
        self.supplied -= amount
        return 0

    async def borrow(self, amount: int) -> int:
        status = await self._call("borrow", amount)
        if status == 0:
            self.borrowed += amount
        return status

    async def repay_borrow(self, amount: int) -> int:
        status = await self._call("repay_borrow", amount)
        if status == 0:
            self.borrowed = max(self.borrowed - amount, 0)
        return status

    async def borrow_rate_per_step(self) -> int:
        return self.rate_per_step

    async def balance_of_underlying(self, account: str) -> int:
        return self.supplied if account == self.account else 0


class FixedPriceOracle:
    """Oracle returning whatever price it is told to."""

    def __init__(self, price: int, decimals: int = 8) -> None:
        self.price = price
        self.decimals = decimals

    async def latest_price(self) -> int:
        return self.price

    async def price_decimals(self) -> int:
        return self.decimals


@dataclass
class SwapRecord:
    path: list[str]
    amount_in: int
    min_amount_out: int
    recipient: str
    deadline: int
    amounts: list[int] = field(default_factory=list)


class InMemorySwapVenue:
    """Venue quoting each hop at a fixed WAD-scaled rate (out per unit in)."""

    def __init__(self, rates: dict[tuple[str, str], int] | None = None) -> None:
        self.rates = dict(rates or {})
        self.swaps: list[SwapRecord] = []

    async def swap(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> list[int]:
        amounts = [amount_in]
        for src, dst in zip(path, path[1:]):
            amounts.append(amounts[-1] * self.rates.get((src, dst), 0) // WAD)
        self.swaps.append(
            SwapRecord(list(path), amount_in, min_amount_out, recipient, deadline, amounts)
        )
        return amounts


class InMemoryTokenBank:
    """Records outbound transfers per (asset, recipient)."""

    def __init__(self) -> None:
        self.fail_status = 0
        self.sent: dict[tuple[str, str], int] = {}

    async def transfer(self, asset: str, recipient: str, amount: int) -> int:
        if self.fail_status:
            return self.fail_status
        key = (asset, recipient)
        self.sent[key] = self.sent.get(key, 0) + amount
        return 0

    def received(self, asset: str, recipient: str) -> int:
        return self.sent.get((asset, recipient), 0)


class ManualClock:
    """Step counter advanced explicitly by the caller."""

    def __init__(self, step: int = 0) -> None:
        self.step = step

    async def current_step(self) -> int:
        return self.step

    def advance(self, steps: int = 1) -> int:
        if steps < 0:
            raise ValueError("Clock only moves forward")
        self.step += steps
        return self.step
