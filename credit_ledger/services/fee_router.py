"""Fee split router — divides inflows between the facility and the manager pool."""
from __future__ import annotations

import logging

from ..errors import AdapterCallFailed, InsufficientBalance
from ..interfaces.swap_venue import SwapVenue
from ..interfaces.token_bank import TokenBank
from ..models import InflowSplit, SweepPolicy, SweepResult
from ..registry import AssetRegistry
from ..store import LedgerStore
from ..units import apply_percent
from .position_ledger import PositionLedger

logger = logging.getLogger(__name__)

# Account the venue pays swap proceeds to before they are supplied.
ROUTER_ACCOUNT = "fee-router"


class FeeSplitRouter:
    """Accumulates inflows and sweeps the manager pool once it reaches threshold.

    Each inflow credits the manager pool exactly once: with the facility
    route the whole manager share, otherwise the manager share net of
    commission.
    """

    def __init__(
        self,
        store: LedgerStore,
        registry: AssetRegistry,
        positions: PositionLedger,
        bank: TokenBank,
        venue: SwapVenue | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._positions = positions
        self._bank = bank
        self._venue = venue

    def _credit_pool(self, asset: str, amount: int) -> None:
        pool = self._store.pool.manager_pool
        pool[asset] = pool.get(asset, 0) + amount

    def _credit_fees(self, asset: str, amount: int) -> None:
        fees = self._store.pool.collected_fees
        fees[asset] = fees.get(asset, 0) + amount

    async def route_inflow(
        self,
        asset: str,
        gross: int,
        recipient: str,
        to_facility_pool: bool,
        step: int,
    ) -> InflowSplit:
        if gross <= 0:
            raise ValueError(f"Inflow must be positive, got {gross}")
        self._registry.resolve(asset)
        params = self._store.params
        facility_share = apply_percent(gross, params.split_percent)
        manager_share = gross - facility_share

        if to_facility_pool:
            if facility_share > 0:
                await self._positions.deposit(recipient, asset, facility_share, step)
            self._credit_pool(asset, manager_share)
            split = InflowSplit(facility_share=facility_share, manager_share=manager_share)
        else:
            if facility_share > 0:
                status = await self._bank.transfer(asset, recipient, facility_share)
                if status != 0:
                    raise AdapterCallFailed(
                        f"transfer of {facility_share} {asset} to {recipient} "
                        f"failed with status {status}"
                    )
            commission = apply_percent(manager_share, params.commission_percent)
            self._credit_fees(asset, commission)
            self._credit_pool(asset, manager_share - commission)
            split = InflowSplit(
                facility_share=facility_share,
                manager_share=manager_share,
                commission=commission,
            )

        self._store.emit(
            step,
            "inflow",
            user=recipient,
            asset=asset,
            amount=gross,
            to_facility_pool=to_facility_pool,
            facility_share=split.facility_share,
            manager_share=split.manager_share,
            commission=split.commission,
        )
        logger.info(
            "Routed %d %s: facility %d, manager %d, commission %d",
            gross,
            asset,
            split.facility_share,
            split.manager_share,
            split.commission,
        )
        return split

    def contribute(self, asset: str, amount: int, step: int) -> int:
        """Top up the manager pool directly; returns the new pool balance."""
        if amount <= 0:
            raise ValueError(f"Contribution must be positive, got {amount}")
        self._registry.resolve(asset)
        self._credit_pool(asset, amount)
        self._store.emit(step, "contribute", asset=asset, amount=amount)
        return self._store.pool.manager_pool[asset]

    async def sweep(
        self,
        asset: str,
        destination: str | None,
        policy: SweepPolicy,
        step: int,
    ) -> SweepResult:
        """Forward the manager pool for ``asset`` once it meets its threshold.

        Below threshold nothing moves and ``swept`` is 0. Otherwise the pool
        is zeroed, optionally converted through the venue, and the proceeds
        are supplied into the facility on behalf of ``destination``
        (the pool holder when omitted).
        """
        self._registry.resolve(asset)
        params = self._store.params
        balance = self._store.pool.manager_pool.get(asset, 0)
        threshold = params.sweep_thresholds.get(asset, 0)
        if balance == 0 or balance < threshold:
            logger.info(
                "Sweep of %s skipped: pool %d below threshold %d", asset, balance, threshold
            )
            return SweepResult(asset=asset, swept=0)

        self._store.pool.manager_pool[asset] = 0
        target = destination or params.pool_holder
        supplied_asset, supplied_amount = asset, balance

        if policy.convert_to is not None and policy.convert_to != asset:
            supplied_asset = policy.convert_to
            self._registry.resolve(supplied_asset)
            supplied_amount = await self._convert(asset, balance, policy, step)

        await self._positions.deposit(target, supplied_asset, supplied_amount, step)
        self._store.emit(
            step,
            "sweep",
            user=target,
            asset=asset,
            amount=balance,
            supplied_asset=supplied_asset,
            supplied_amount=supplied_amount,
        )
        logger.info(
            "Swept %d %s → %d %s for %s",
            balance,
            asset,
            supplied_amount,
            supplied_asset,
            target,
        )
        return SweepResult(
            asset=asset,
            swept=balance,
            supplied_asset=supplied_asset,
            supplied_amount=supplied_amount,
        )

    async def _convert(self, asset: str, amount: int, policy: SweepPolicy, step: int) -> int:
        if self._venue is None:
            raise AdapterCallFailed("No swap venue configured for conversion")
        path = [asset, policy.convert_to]
        amounts = await self._venue.swap(
            path,
            amount,
            policy.min_amount_out,
            ROUTER_ACCOUNT,
            step + policy.deadline_steps,
        )
        if not amounts:
            raise AdapterCallFailed(f"Swap {asset}→{policy.convert_to} returned no amounts")
        received = amounts[-1]
        if received < policy.min_amount_out:
            raise AdapterCallFailed(
                f"Swap {asset}→{policy.convert_to} returned {received}, "
                f"below minimum {policy.min_amount_out}"
            )
        return received

    async def withdraw_fees(self, asset: str, amount: int, recipient: str, step: int) -> int:
        """Pay collected protocol fees out to ``recipient``; returns the remainder."""
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        fees = self._store.pool.collected_fees
        available = fees.get(asset, 0)
        if amount > available:
            raise InsufficientBalance(
                f"Only {available} {asset} of fees collected, requested {amount}"
            )
        fees[asset] = available - amount
        status = await self._bank.transfer(asset, recipient, amount)
        if status != 0:
            raise AdapterCallFailed(
                f"transfer of {amount} {asset} fees failed with status {status}"
            )
        self._store.emit(step, "fees_withdrawn", user=recipient, asset=asset, amount=amount)
        return fees[asset]
