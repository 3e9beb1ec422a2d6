"""Credit ledger facade — every external entry point, guarded and authorized."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .access import Role
from .errors import LedgerError
from .guard import OperationGuard
from .interfaces.authority import Authority
from .interfaces.clock import StepClock
from .interfaces.market_adapter import MarketAdapter
from .interfaces.price_oracle import PriceOracle
from .interfaces.swap_venue import SwapVenue
from .interfaces.token_bank import TokenBank
from .models import (
    AssetDescriptor,
    CreditInfo,
    InflowSplit,
    LedgerEvent,
    LedgerParameters,
    Position,
    SweepPolicy,
    SweepResult,
)
from .registry import AssetRegistry
from .services import (
    CollateralEngine,
    CreditDesk,
    CreditScoreEngine,
    FeeSplitRouter,
    PositionLedger,
)
from .store import LedgerStore

logger = logging.getLogger(__name__)


class CreditLedger:
    """Multi-asset credit ledger.

    Each public coroutine reads the step once, checks the caller's role and
    runs as one all-or-nothing critical section. Queries read the store
    directly.
    """

    def __init__(
        self,
        clock: StepClock,
        authority: Authority,
        bank: TokenBank,
        venue: SwapVenue | None = None,
        params: LedgerParameters | None = None,
        global_credit_ceiling: int = 0,
        event_log_size: int | None = None,
    ) -> None:
        self._clock = clock
        self._authority = authority
        self.store = LedgerStore(params, event_log_size)
        self.store.pool.global_credit_ceiling = global_credit_ceiling
        self.registry = AssetRegistry()
        self._guard = OperationGuard(self.store)

        self.collateral = CollateralEngine(self.store, self.registry)
        self.credit = CreditScoreEngine(self.store)
        self.positions = PositionLedger(
            self.store, self.registry, self.collateral, self.credit, bank
        )
        self.router = FeeSplitRouter(self.store, self.registry, self.positions, bank, venue)
        self.desk = CreditDesk(
            self.store, self.registry, self.positions, self.collateral, self.credit
        )

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[int]:
        async with self._guard.section(name):
            step = await self._clock.current_step()
            try:
                yield step
            except LedgerError as e:
                logger.warning("%s failed at step %d: %s", name, step, e)
                raise

    def _require_admin(self, caller: str) -> None:
        self._authority.require(caller, Role.ADMIN)

    def _require_registrar(self, caller: str) -> None:
        self._authority.require(caller, Role.REGISTRAR, Role.ADMIN)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def register_asset(
        self,
        caller: str,
        asset: str,
        adapter: MarketAdapter,
        decimals: int,
        stable: bool,
        oracle: PriceOracle | None = None,
    ) -> AssetDescriptor:
        self._require_admin(caller)
        descriptor = AssetDescriptor(
            asset=asset, adapter=adapter, decimals=decimals, stable=stable, oracle=oracle
        )
        async with self._operation("register_asset") as step:
            self.registry.register(descriptor)
            self.store.emit(step, "asset_registered", asset=asset, stable=stable)
        return descriptor

    def resolve_adapter(self, asset: str) -> MarketAdapter:
        return self.registry.resolve_adapter(asset)

    # ------------------------------------------------------------------
    # Facility positions
    # ------------------------------------------------------------------

    async def deposit(self, caller: str, user: str, asset: str, amount: int) -> Position:
        """Deposit on behalf of ``user``; ``caller`` has already transferred in."""
        async with self._operation("deposit") as step:
            return await self.positions.deposit(
                user, asset, amount, step, depositor=caller
            )

    async def withdraw(self, user: str, asset: str, amount: int) -> Position:
        async with self._operation("withdraw") as step:
            return await self.positions.withdraw(user, asset, amount, step)

    async def borrow(self, user: str, asset: str, amount: int) -> Position:
        async with self._operation("borrow") as step:
            return await self.positions.borrow(user, asset, amount, step)

    async def repay(self, user: str, asset: str, amount: int) -> int:
        async with self._operation("repay") as step:
            return await self.positions.repay(user, asset, amount, step)

    async def accrue(self, user: str, asset: str) -> int:
        async with self._operation("accrue") as step:
            return await self.positions.accrue(user, asset, step)

    # ------------------------------------------------------------------
    # Credit profiles and pooled credit
    # ------------------------------------------------------------------

    async def register_user(self, caller: str, user: str) -> CreditInfo:
        self._require_registrar(caller)
        async with self._operation("register_user") as step:
            self.credit.register(user, step)
        return self.credit.credit_info(user)

    async def pooled_borrow(self, user: str, asset: str, amount: int) -> CreditInfo:
        async with self._operation("pooled_borrow") as step:
            return await self.desk.borrow(user, asset, amount, step)

    async def pooled_repay(self, user: str, asset: str, amount: int) -> CreditInfo:
        async with self._operation("pooled_repay") as step:
            return await self.desk.repay(user, asset, amount, step)

    async def adjust_credit(
        self, caller: str, user: str, delta: int, boost_factor: int
    ) -> CreditInfo:
        self._require_admin(caller)
        async with self._operation("adjust_credit") as step:
            self.credit.admin_adjust(user, delta, boost_factor, step)
        return self.credit.credit_info(user)

    async def set_global_ceiling(self, caller: str, ceiling: int) -> None:
        self._require_admin(caller)
        async with self._operation("set_global_ceiling") as step:
            self.desk.set_global_ceiling(ceiling, step)

    async def refresh_global_ceiling(self, caller: str, asset: str) -> int:
        self._require_admin(caller)
        async with self._operation("refresh_global_ceiling") as step:
            return await self.desk.refresh_global_ceiling(asset, step)

    async def withdraw_reserve(
        self, caller: str, asset: str, amount: int, recipient: str
    ) -> None:
        self._require_admin(caller)
        async with self._operation("withdraw_reserve") as step:
            await self.desk.withdraw_reserve(asset, amount, recipient, step)

    # ------------------------------------------------------------------
    # Fee routing
    # ------------------------------------------------------------------

    async def route_inflow(
        self,
        caller: str,
        asset: str,
        gross: int,
        recipient: str,
        to_facility_pool: bool,
    ) -> InflowSplit:
        self._require_registrar(caller)
        async with self._operation("route_inflow") as step:
            return await self.router.route_inflow(
                asset, gross, recipient, to_facility_pool, step
            )

    async def contribute(self, caller: str, asset: str, amount: int) -> int:
        self._require_admin(caller)
        async with self._operation("contribute") as step:
            return self.router.contribute(asset, amount, step)

    async def sweep(
        self,
        caller: str,
        asset: str,
        destination: str | None = None,
        policy: SweepPolicy | None = None,
    ) -> SweepResult:
        self._require_admin(caller)
        async with self._operation("sweep") as step:
            return await self.router.sweep(asset, destination, policy or SweepPolicy(), step)

    async def withdraw_fees(
        self, caller: str, asset: str, amount: int, recipient: str
    ) -> int:
        self._require_admin(caller)
        async with self._operation("withdraw_fees") as step:
            return await self.router.withdraw_fees(asset, amount, recipient, step)

    # ------------------------------------------------------------------
    # Admin parameters and roles
    # ------------------------------------------------------------------

    async def _set_params(self, caller: str, name: str, **values: int) -> None:
        self._require_admin(caller)
        async with self._operation(name) as step:
            for key, value in values.items():
                setattr(self.store.params, key, value)
            self.store.emit(step, name, **values)
        logger.info("Parameters updated: %s", values)

    async def set_collateral_factors(self, caller: str, stable: int, non_stable: int) -> None:
        for factor in (stable, non_stable):
            if not 0 < factor <= 100:
                raise ValueError(f"Collateral factor must be in (0, 100], got {factor}")
        await self._set_params(
            caller,
            "set_collateral_factors",
            stable_collateral_factor=stable,
            non_stable_collateral_factor=non_stable,
        )

    async def set_rate_delta(self, caller: str, rate_delta_bps: int) -> None:
        if rate_delta_bps < 0:
            raise ValueError("Rate delta must be non-negative")
        await self._set_params(caller, "set_rate_delta", rate_delta_bps=rate_delta_bps)

    async def set_repay_fee(self, caller: str, repay_fee_bps: int) -> None:
        if not 0 <= repay_fee_bps <= 10_000:
            raise ValueError("Repay fee must be within [0, 10000] bps")
        await self._set_params(caller, "set_repay_fee", repay_fee_bps=repay_fee_bps)

    async def set_score_steps(self, caller: str, borrow_step: int, repay_step: int) -> None:
        self._require_admin(caller)
        async with self._operation("set_score_steps") as step:
            self.credit.set_score_steps(borrow_step, repay_step)
            self.store.emit(
                step, "set_score_steps", borrow_step=borrow_step, repay_step=repay_step
            )

    async def set_decay_threshold(self, caller: str, steps: int) -> None:
        if steps < 0:
            raise ValueError("Decay threshold must be non-negative")
        await self._set_params(caller, "set_decay_threshold", decay_threshold_steps=steps)

    async def set_borrowing_multiplier(self, caller: str, multiplier_bps: int) -> None:
        if multiplier_bps <= 0:
            raise ValueError("Borrowing multiplier must be positive")
        await self._set_params(
            caller, "set_borrowing_multiplier", borrowing_multiplier_bps=multiplier_bps
        )

    async def set_split(self, caller: str, split_percent: int) -> None:
        if not 0 <= split_percent <= 100:
            raise ValueError("Split percent must be within [0, 100]")
        await self._set_params(caller, "set_split", split_percent=split_percent)

    async def set_commission(self, caller: str, commission_percent: int) -> None:
        if not 0 <= commission_percent <= 100:
            raise ValueError("Commission percent must be within [0, 100]")
        await self._set_params(caller, "set_commission", commission_percent=commission_percent)

    async def set_sweep_threshold(self, caller: str, asset: str, threshold: int) -> None:
        self._require_admin(caller)
        if threshold < 0:
            raise ValueError("Sweep threshold must be non-negative")
        async with self._operation("set_sweep_threshold") as step:
            self.registry.resolve(asset)
            self.store.params.sweep_thresholds[asset] = threshold
            self.store.emit(step, "set_sweep_threshold", asset=asset, amount=threshold)

    def grant_role(self, caller: str, role: str, account: str) -> None:
        self._require_admin(caller)
        self._authority.grant(role, account)

    def revoke_role(self, caller: str, role: str, account: str) -> None:
        self._require_admin(caller)
        self._authority.revoke(role, account)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_credit_info(self, user: str) -> CreditInfo:
        return self.credit.credit_info(user)

    def position(self, user: str, asset: str) -> Position:
        return self.positions.position(user, asset)

    async def total_borrowing_power(self, user: str) -> int:
        return await self.collateral.total_borrowing_power(user)

    def total_stablecoin_debt(self, user: str) -> int:
        return self.collateral.total_stablecoin_debt(user)

    async def reserve_valuation(self, asset: str, user: str) -> int:
        return await self.collateral.reserve_valuation(asset, user)

    async def market_balance(self, asset: str, account: str) -> int:
        return await self.positions.market_balance(asset, account)

    def collected_fees(self, asset: str) -> int:
        return self.store.pool.collected_fees.get(asset, 0)

    def manager_pool(self, asset: str) -> int:
        return self.store.pool.manager_pool.get(asset, 0)

    @property
    def total_credit_used(self) -> int:
        return self.store.pool.total_credit_used

    @property
    def global_credit_ceiling(self) -> int:
        return self.store.pool.global_credit_ceiling

    @property
    def params(self) -> LedgerParameters:
        return self.store.params

    @property
    def operation_in_flight(self) -> str | None:
        return self._guard.in_flight

    def events(self, n: int = 200) -> list[LedgerEvent]:
        return self.store.events.tail(n)
