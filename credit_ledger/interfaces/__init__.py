"""Protocol interfaces for the credit ledger's external collaborators."""
from .authority import Authority
from .clock import StepClock
from .market_adapter import MarketAdapter
from .price_oracle import PriceOracle
from .swap_venue import SwapVenue
from .token_bank import TokenBank

__all__ = [
    "Authority",
    "MarketAdapter",
    "PriceOracle",
    "StepClock",
    "SwapVenue",
    "TokenBank",
]
