"""Collateral engine — borrowing power and stablecoin debt across all assets."""
from __future__ import annotations

import logging

from ..errors import InvalidOraclePrice
from ..models import AssetDescriptor
from ..registry import AssetRegistry
from ..store import LedgerStore
from ..units import WAD, apply_percent, scale_to_wad

logger = logging.getLogger(__name__)


class CollateralEngine:
    """Reads positions and the registry; never mutates the store.

    All results are value units (18-decimal unit of account).
    """

    def __init__(self, store: LedgerStore, registry: AssetRegistry) -> None:
        self._store = store
        self._registry = registry

    def stable_value(self, asset: str, amount: int) -> int:
        """Stable assets are valued 1:1, only their precision is normalized."""
        return scale_to_wad(amount, self._registry.resolve(asset).decimals)

    async def valuation_of(self, descriptor: AssetDescriptor, amount: int) -> int:
        """Value ``amount`` of a non-stable asset through its oracle.

        Price and token amount are both normalized to 18 decimals before
        multiplying, so assets of different native precision compare directly.
        """
        if descriptor.stable or descriptor.oracle is None:
            return 0
        price = await descriptor.oracle.latest_price()
        if price <= 0:
            raise InvalidOraclePrice(
                f"Oracle for '{descriptor.asset}' returned non-positive price {price}"
            )
        price_decimals = await descriptor.oracle.price_decimals()
        price_wad = scale_to_wad(price, price_decimals)
        amount_wad = scale_to_wad(amount, descriptor.decimals)
        return amount_wad * price_wad // WAD

    async def reserve_valuation(self, asset: str, user: str) -> int:
        """USD valuation of ``user``'s deposit of a non-stable asset; 0 for stables."""
        descriptor = self._registry.resolve(asset)
        if descriptor.stable:
            return 0
        deposited = self._store.peek_position(user, asset).deposited
        return await self.valuation_of(descriptor, deposited)

    async def total_borrowing_power(self, user: str) -> int:
        params = self._store.params
        power = 0
        for descriptor in self._registry.assets():
            deposited = self._store.peek_position(user, descriptor.asset).deposited
            if deposited == 0:
                continue
            if descriptor.stable:
                value = scale_to_wad(deposited, descriptor.decimals)
                power += apply_percent(value, params.stable_collateral_factor)
            else:
                value = await self.valuation_of(descriptor, deposited)
                power += apply_percent(value, params.non_stable_collateral_factor)
        return power

    def total_stablecoin_debt(self, user: str) -> int:
        """Sum of borrowed stable amounts; callers accrue interest beforehand."""
        debt = 0
        for asset, position in self._store.user_positions(user).items():
            if position.borrowed == 0:
                continue
            descriptor = self._registry.resolve(asset)
            if descriptor.stable:
                debt += scale_to_wad(position.borrowed, descriptor.decimals)
        return debt

    async def shortfall(self, user: str, additional_debt: int = 0) -> int:
        """How far debt (plus ``additional_debt``) exceeds power; 0 when covered.

        Power is only priced when there is debt to cover.
        """
        debt = self.total_stablecoin_debt(user) + additional_debt
        if debt == 0:
            return 0
        power = await self.total_borrowing_power(user)
        logger.debug("Health of %s: power=%d debt=%d", user, power, debt)
        return max(debt - power, 0)
