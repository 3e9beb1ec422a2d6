"""Accounting services."""
from .collateral import CollateralEngine
from .credit_desk import CreditDesk
from .credit_score import CreditScoreEngine
from .fee_router import FeeSplitRouter
from .position_ledger import PositionLedger

__all__ = [
    "CollateralEngine",
    "CreditDesk",
    "CreditScoreEngine",
    "FeeSplitRouter",
    "PositionLedger",
]
