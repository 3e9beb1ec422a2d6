"""Wiring — builds a CreditLedger and its collaborators from AppConfig."""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from .access import RoleAuthority
from .config import AppConfig, PriceOracleConfig
from .interfaces.authority import Authority
from .interfaces.clock import StepClock
from .interfaces.market_adapter import MarketAdapter
from .interfaces.price_oracle import PriceOracle
from .interfaces.swap_venue import SwapVenue
from .interfaces.token_bank import TokenBank
from .ledger import CreditLedger
from .models import AssetDescriptor, LedgerParameters
from .oracles import PythOracle
from .rpc import JsonRpcClient, RpcMarketAdapter, RpcStepClock, RpcSwapVenue, RpcTokenBank

logger = logging.getLogger(__name__)

# Registry of oracle factories keyed by provider name.
_ORACLE_FACTORIES: dict[str, Callable[[PriceOracleConfig, str], PriceOracle]] = {
    "pyth": lambda cfg, feed: PythOracle(cfg.pyth, feed),
}


def build_parameters(config: AppConfig) -> LedgerParameters:
    """Seed the mutable ledger parameters from the frozen configuration."""
    return LedgerParameters(
        stable_collateral_factor=config.ledger.stable_collateral_factor,
        non_stable_collateral_factor=config.ledger.non_stable_collateral_factor,
        rate_delta_bps=config.ledger.rate_delta_bps,
        repay_fee_bps=config.ledger.repay_fee_bps,
        baseline_score=config.credit.baseline_score,
        max_score=config.credit.max_score,
        borrow_step=config.credit.borrow_step,
        repay_step=config.credit.repay_step,
        decay_threshold_steps=config.credit.decay_threshold_steps,
        borrowing_multiplier_bps=config.credit.borrowing_multiplier_bps,
        split_percent=config.router.split_percent,
        commission_percent=config.router.commission_percent,
        sweep_thresholds=dict(config.router.sweep_thresholds),
        pool_holder=config.router.pool_holder,
    )


def build_oracle(config: PriceOracleConfig, feed: str) -> PriceOracle:
    factory = _ORACLE_FACTORIES.get(config.provider)
    if factory is None:
        raise ValueError(f"No oracle factory for provider '{config.provider}'")
    return factory(config, feed)


def build_ledger(
    config: AppConfig,
    *,
    clock: StepClock | None = None,
    bank: TokenBank | None = None,
    venue: SwapVenue | None = None,
    authority: Authority | None = None,
    adapters: Mapping[str, MarketAdapter] | None = None,
    oracles: Mapping[str, PriceOracle] | None = None,
) -> CreditLedger:
    """Build a ledger with every configured asset registered.

    Collaborators not passed in are the production ones, talking to the
    settlement gateway over ``config.rpc`` and to the configured oracle
    provider. Construction performs no I/O.
    """
    adapters = adapters or {}
    oracles = oracles or {}
    client = JsonRpcClient(config.rpc)

    ledger = CreditLedger(
        clock=clock or RpcStepClock(client),
        authority=authority
        or RoleAuthority(admins=config.access.admins, registrars=config.access.registrars),
        bank=bank
        or RpcTokenBank(
            client,
            tokens={name: a.token for name, a in config.assets.items() if a.token},
            sender=config.rpc.facility_account,
        ),
        venue=venue or RpcSwapVenue(client, config.rpc.swap_router),
        params=build_parameters(config),
        global_credit_ceiling=config.credit.global_credit_ceiling,
        event_log_size=config.ledger.event_log_size,
    )

    for name, asset_cfg in config.assets.items():
        adapter = adapters.get(name) or RpcMarketAdapter(
            client, asset_cfg.market, config.rpc.facility_account
        )
        oracle = None
        if not asset_cfg.stable:
            oracle = oracles.get(name) or build_oracle(config.price_oracle, asset_cfg.price_feed)
        ledger.registry.register(
            AssetDescriptor(
                asset=name,
                adapter=adapter,
                decimals=asset_cfg.decimals,
                stable=asset_cfg.stable,
                oracle=oracle,
            )
        )

    logger.info("Ledger built with %d assets", len(ledger.registry))
    return ledger
