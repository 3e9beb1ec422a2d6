"""Credit desk — pooled credit lent out of the pool holder's facility position."""
from __future__ import annotations

import logging

from ..errors import (
    CapacityExceeded,
    GlobalLimitExceeded,
    InsufficientBorrowed,
    UnknownUser,
)
from ..models import CreditInfo
from ..registry import AssetRegistry
from ..store import LedgerStore
from .collateral import CollateralEngine
from .credit_score import CreditScoreEngine
from .position_ledger import PositionLedger

logger = logging.getLogger(__name__)


class CreditDesk:
    """Score-gated borrowing against the shared pool.

    Borrowers here are limited by their score-derived capacity and by the
    global ceiling, not by their own collateral.
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AssetRegistry,
        positions: PositionLedger,
        collateral: CollateralEngine,
        credit: CreditScoreEngine,
    ) -> None:
        self._store = store
        self._registry = registry
        self._positions = positions
        self._collateral = collateral
        self._credit = credit

    @property
    def pool_holder(self) -> str:
        return self._store.params.pool_holder

    async def borrow(self, user: str, asset: str, amount: int, step: int) -> CreditInfo:
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        self._registry.require_stable(asset)
        profile = self._credit.profile(user)
        if profile.implicit:
            raise UnknownUser(f"'{user}' is not a registered member")
        value = self._collateral.stable_value(asset, amount)

        capacity = self._credit.borrowing_capacity(user)
        if profile.debt_used + value > capacity:
            raise CapacityExceeded(
                f"{user} would use {profile.debt_used + value} of capacity {capacity}"
            )
        pool = self._store.pool
        if pool.total_credit_used + value > pool.global_credit_ceiling:
            raise GlobalLimitExceeded(
                f"Global credit {pool.total_credit_used} + {value} exceeds "
                f"ceiling {pool.global_credit_ceiling}"
            )

        await self._positions.withdraw(self.pool_holder, asset, amount, step, recipient=user)
        self._credit.record_borrow(user, value, step, pooled=True)
        self._store.emit(step, "pooled_borrow", user=user, asset=asset, amount=amount)
        info = self._credit.credit_info(user)
        logger.info(
            "Pooled borrow %d %s by %s (score %d, used %d / %d)",
            amount,
            asset,
            user,
            info.score,
            info.debt_used,
            info.capacity,
        )
        return info

    async def repay(self, user: str, asset: str, amount: int, step: int) -> CreditInfo:
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        self._registry.require_stable(asset)
        profile = self._credit.profile(user)
        value = self._collateral.stable_value(asset, amount)
        if value > profile.pooled_debt:
            raise InsufficientBorrowed(
                f"{user} has {profile.pooled_debt} pooled credit in use, cannot repay {value}"
            )

        await self._positions.deposit(self.pool_holder, asset, amount, step, depositor=user)
        self._credit.record_repay(user, value, step, pooled=True)
        self._store.emit(step, "pooled_repay", user=user, asset=asset, amount=amount)
        info = self._credit.credit_info(user)
        logger.info("Pooled repay %d %s by %s (score %d)", amount, asset, user, info.score)
        return info

    async def withdraw_reserve(self, asset: str, amount: int, recipient: str, step: int) -> None:
        await self._positions.withdraw(self.pool_holder, asset, amount, step, recipient=recipient)

    async def refresh_global_ceiling(self, asset: str, step: int) -> int:
        """Re-derive the ceiling from the pool holder's non-stable reserve."""
        descriptor = self._registry.resolve(asset)
        if descriptor.stable:
            raise ValueError(f"Ceiling is derived from a non-stable reserve, not '{asset}'")
        ceiling = await self._collateral.reserve_valuation(asset, self.pool_holder)
        self.set_global_ceiling(ceiling, step)
        return ceiling

    def set_global_ceiling(self, ceiling: int, step: int) -> None:
        if ceiling < 0:
            raise ValueError("Global credit ceiling must be non-negative")
        self._store.pool.global_credit_ceiling = ceiling
        self._store.emit(step, "ceiling", amount=ceiling)
        logger.info("Global credit ceiling set to %d", ceiling)
