"""Swap venue protocol — external conversion of swept funds."""
from typing import Protocol


class SwapVenue(Protocol):
    """Abstract interface for an exact-input token swap."""

    async def swap(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        deadline: int,
    ) -> list[int]: ...
