"""Account names and unit helpers shared by the test modules."""
from __future__ import annotations

ADMIN = "0xADMIN"
REGISTRY = "0xREGISTRY"
ALICE = "0xALICE"
BOB = "0xBOB"
POOL = "credit-pool"


def usdd(n: int) -> int:
    """Whole USDD (18 decimals) to base units."""
    return int(n * 10**18)


def usdt(n: int) -> int:
    """Whole USDT (6 decimals) to base units."""
    return int(n * 10**6)


def btc(n: int) -> int:
    """Whole BTC (8 decimals) to base units."""
    return int(n * 10**8)
