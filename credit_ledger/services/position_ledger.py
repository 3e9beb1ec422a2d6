"""Position ledger — per (user, asset) deposits, borrows and interest accrual."""
from __future__ import annotations

import logging

from ..errors import (
    AdapterCallFailed,
    CapacityExceeded,
    GlobalLimitExceeded,
    InsufficientBalance,
    InsufficientBorrowed,
)
from ..interfaces.token_bank import TokenBank
from ..models import Position
from ..registry import AssetRegistry
from ..store import LedgerStore
from ..units import BASIS_POINTS, WAD, apply_bps
from .collateral import CollateralEngine
from .credit_score import CreditScoreEngine

logger = logging.getLogger(__name__)


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")


def _check_status(call: str, asset: str, status: int) -> None:
    if status != 0:
        raise AdapterCallFailed(f"{call} on '{asset}' failed with status {status}")


class PositionLedger:
    """Facility accounting.

    Methods here run inside a critical section opened by the caller and take
    the current step explicitly; they never open sections of their own.
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AssetRegistry,
        collateral: CollateralEngine,
        credit: CreditScoreEngine,
        bank: TokenBank,
    ) -> None:
        self._store = store
        self._registry = registry
        self._collateral = collateral
        self._credit = credit
        self._bank = bank

    # ------------------------------------------------------------------
    # Interest
    # ------------------------------------------------------------------

    async def accrue(self, user: str, asset: str, step: int) -> int:
        """Bring a stable position's interest up to ``step``; return the interest.

        The first touch only timestamps the position. Elapsed steps since the
        last accrual are bridged with one linear update, which understates
        compounding when calls are infrequent.
        """
        descriptor = self._registry.resolve(asset)
        if not descriptor.stable:
            return 0
        position = self._store.position(user, asset)
        if position.last_accrual_step is None:
            position.last_accrual_step = step
            return 0
        elapsed = step - position.last_accrual_step
        if elapsed < 0:
            raise ValueError(
                f"Step {step} precedes last accrual {position.last_accrual_step}"
            )
        if elapsed == 0:
            return 0
        interest = 0
        if position.borrowed > 0:
            rate = await descriptor.adapter.borrow_rate_per_step()
            adjusted = rate * (BASIS_POINTS + self._store.params.rate_delta_bps) // BASIS_POINTS
            interest = position.borrowed * adjusted * elapsed // WAD
            position.borrowed += interest
        position.last_accrual_step = step
        if interest:
            logger.debug(
                "Accrued %d on %s/%s over %d steps", interest, user, asset, elapsed
            )
        return interest

    async def accrue_user(self, user: str, step: int) -> None:
        """Accrue every stable position held by ``user``."""
        for asset in list(self._store.user_positions(user)):
            await self.accrue(user, asset, step)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def deposit(
        self,
        user: str,
        asset: str,
        amount: int,
        step: int,
        depositor: str | None = None,
    ) -> Position:
        """Credit ``amount`` to ``user``. The inbound transfer already happened.

        ``depositor`` is the account that funded it (default: ``user``).
        """
        _require_positive(amount)
        descriptor = self._registry.resolve(asset)
        await self.accrue(user, asset, step)
        _check_status("supply", asset, await descriptor.adapter.supply(amount))
        position = self._store.position(user, asset)
        position.deposited += amount
        source = depositor or user
        self._store.emit(
            step, "deposit", user=user, asset=asset, amount=amount, depositor=source
        )
        logger.info("Deposit %d %s for %s from %s", amount, asset, user, source)
        return position

    async def withdraw(
        self,
        user: str,
        asset: str,
        amount: int,
        step: int,
        recipient: str | None = None,
    ) -> Position:
        """Release ``amount`` of ``user``'s deposit to ``recipient`` (default: user).

        The deposit is decreased first and the remaining collateral must still
        cover outstanding debt; otherwise the decrease is undone.
        """
        _require_positive(amount)
        descriptor = self._registry.resolve(asset)
        await self.accrue_user(user, step)
        position = self._store.position(user, asset)
        if position.deposited < amount:
            raise InsufficientBalance(
                f"{user} has {position.deposited} {asset} deposited, requested {amount}"
            )
        position.deposited -= amount
        shortfall = await self._collateral.shortfall(user)
        if shortfall:
            position.deposited += amount
            raise CapacityExceeded(
                f"Withdrawing {amount} {asset} leaves {user} short by {shortfall}"
            )
        _check_status(
            "redeem_underlying", asset, await descriptor.adapter.redeem_underlying(amount)
        )
        target = recipient or user
        _check_status("transfer", asset, await self._bank.transfer(asset, target, amount))
        self._store.emit(step, "withdraw", user=user, asset=asset, amount=amount, recipient=target)
        logger.info("Withdraw %d %s from %s to %s", amount, asset, user, target)
        return position

    async def borrow(self, user: str, asset: str, amount: int, step: int) -> Position:
        _require_positive(amount)
        descriptor = self._registry.require_stable(asset)
        await self.accrue_user(user, step)
        await self.accrue(user, asset, step)
        value = self._collateral.stable_value(asset, amount)
        shortfall = await self._collateral.shortfall(user, additional_debt=value)
        if shortfall:
            raise CapacityExceeded(
                f"Borrowing {amount} {asset} exceeds {user}'s borrowing power by {shortfall}"
            )
        pool = self._store.pool
        if pool.total_credit_used + value > pool.global_credit_ceiling:
            raise GlobalLimitExceeded(
                f"Global credit {pool.total_credit_used} + {value} exceeds "
                f"ceiling {pool.global_credit_ceiling}"
            )
        _check_status("borrow", asset, await descriptor.adapter.borrow(amount))
        _check_status("transfer", asset, await self._bank.transfer(asset, user, amount))

        position = self._store.position(user, asset)
        position.borrowed += amount
        position.principal += amount
        if not self._credit.is_registered(user):
            self._credit.register(user, step, implicit=True)
        profile = self._credit.record_borrow(user, value, step)
        self._store.emit(step, "borrow", user=user, asset=asset, amount=amount, score=profile.score)
        logger.info("Borrow %d %s by %s (score %d)", amount, asset, user, profile.score)
        return position

    async def repay(self, user: str, asset: str, amount: int, step: int) -> int:
        """Repay ``amount``; return the protocol fee retained from it.

        The fee portion stays in collected fees and only the net is forwarded
        to the market, but the debt is reduced by the full amount.
        """
        _require_positive(amount)
        descriptor = self._registry.require_stable(asset)
        await self.accrue(user, asset, step)
        position = self._store.position(user, asset)
        if amount > position.borrowed:
            raise InsufficientBorrowed(
                f"{user} owes {position.borrowed} {asset}, cannot repay {amount}"
            )
        fee = apply_bps(amount, self._store.params.repay_fee_bps)
        net = amount - fee
        if net > 0:
            _check_status("repay_borrow", asset, await descriptor.adapter.repay_borrow(net))

        # principal retires pro rata; interest is never credit used
        retired = position.principal * amount // position.borrowed
        position.borrowed -= amount
        position.principal -= retired
        fees = self._store.pool.collected_fees
        fees[asset] = fees.get(asset, 0) + fee
        score = None
        if self._credit.is_registered(user):
            value = self._collateral.stable_value(asset, retired)
            score = self._credit.record_repay(user, value, step).score
        self._store.emit(step, "repay", user=user, asset=asset, amount=amount, fee=fee, score=score)
        logger.info("Repay %d %s by %s (fee %d)", amount, asset, user, fee)
        return fee

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def position(self, user: str, asset: str) -> Position:
        self._registry.resolve(asset)
        return self._store.peek_position(user, asset)

    async def market_balance(self, asset: str, account: str) -> int:
        return await self._registry.resolve_adapter(asset).balance_of_underlying(account)
