"""Fixed-precision helpers shared by the accounting services."""
from __future__ import annotations

WAD = 10**18
WAD_DECIMALS = 18
BASIS_POINTS = 10_000
PERCENT = 100


def scale_to_wad(amount: int, decimals: int) -> int:
    """Rescale an integer carrying ``decimals`` places to 18 places.

    Examples:
        scale_to_wad(5_000_000, 6) → 5 * 10**18
        scale_to_wad(10**20, 20) → 10**18
    """
    if decimals == WAD_DECIMALS:
        return amount
    if decimals < WAD_DECIMALS:
        return amount * 10 ** (WAD_DECIMALS - decimals)
    return amount // 10 ** (decimals - WAD_DECIMALS)


def apply_percent(amount: int, percent: int) -> int:
    return amount * percent // PERCENT


def apply_bps(amount: int, bps: int) -> int:
    return amount * bps // BASIS_POINTS
