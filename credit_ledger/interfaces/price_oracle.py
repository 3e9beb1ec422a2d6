"""Price oracle protocol — price feed for one non-stable asset."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for reading the latest price of an asset."""

    async def latest_price(self) -> int: ...

    async def price_decimals(self) -> int: ...
