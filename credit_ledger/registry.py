"""Asset registry — underlying asset → adapter, precision and valuation path."""
from __future__ import annotations

import logging
from collections.abc import Iterator

from .errors import AssetAlreadyRegistered, UnsupportedAsset
from .interfaces.market_adapter import MarketAdapter
from .models import AssetDescriptor

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Pure lookup table. Descriptors are immutable once registered."""

    def __init__(self) -> None:
        self._assets: dict[str, AssetDescriptor] = {}

    def register(self, descriptor: AssetDescriptor) -> None:
        if descriptor.asset in self._assets:
            raise AssetAlreadyRegistered(f"Asset '{descriptor.asset}' already registered")
        if descriptor.decimals < 0:
            raise ValueError(f"Asset '{descriptor.asset}' has negative decimals")
        if not descriptor.stable and descriptor.oracle is None:
            raise ValueError(
                f"Non-stable asset '{descriptor.asset}' requires a price oracle"
            )
        self._assets[descriptor.asset] = descriptor
        logger.info(
            "Registered asset %s (decimals=%d, stable=%s)",
            descriptor.asset,
            descriptor.decimals,
            descriptor.stable,
        )

    def resolve(self, asset: str) -> AssetDescriptor:
        try:
            return self._assets[asset]
        except KeyError:
            raise UnsupportedAsset(f"Asset '{asset}' is not registered") from None

    def resolve_adapter(self, asset: str) -> MarketAdapter:
        return self.resolve(asset).adapter

    def require_stable(self, asset: str) -> AssetDescriptor:
        descriptor = self.resolve(asset)
        if not descriptor.stable:
            raise UnsupportedAsset(f"Asset '{asset}' is not a stable asset")
        return descriptor

    def is_stable(self, asset: str) -> bool:
        return self.resolve(asset).stable

    def assets(self) -> Iterator[AssetDescriptor]:
        return iter(self._assets.values())

    def __contains__(self, asset: object) -> bool:
        return asset in self._assets

    def __len__(self) -> int:
        return len(self._assets)
