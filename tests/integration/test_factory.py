"""Integration tests for wiring a ledger from configuration."""
from __future__ import annotations

from dataclasses import replace

import pytest

from credit_ledger.access import RoleAuthority
from credit_ledger.config import AppConfig, PriceOracleConfig
from credit_ledger.factory import build_ledger, build_oracle, build_parameters
from credit_ledger.ledger import CreditLedger
from credit_ledger.oracles import PythOracle
from credit_ledger.rpc import RpcMarketAdapter
from credit_ledger.simulated import InMemoryMarket
from credit_ledger.units import WAD

from tests.helpers import ADMIN, REGISTRY, usdd


class TestBuildParameters:
    def test_copies_config(self, sample_app_config: AppConfig) -> None:
        params = build_parameters(sample_app_config)
        assert params.stable_collateral_factor == 70
        assert params.commission_percent == 8
        assert params.sweep_thresholds == {"USDD": usdd(500)}
        assert params.pool_holder == "credit-pool"

    def test_thresholds_not_shared(self, sample_app_config: AppConfig) -> None:
        params = build_parameters(sample_app_config)
        params.sweep_thresholds["USDT"] = 1
        assert "USDT" not in sample_app_config.router.sweep_thresholds


class TestBuildOracle:
    def test_pyth(self, sample_app_config: AppConfig) -> None:
        oracle = build_oracle(sample_app_config.price_oracle, "btcfeed")
        assert isinstance(oracle, PythOracle)
        assert oracle.feed_id == "btcfeed"
        assert oracle.hermes_url == "https://hermes.example.com"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="No oracle factory"):
            build_oracle(PriceOracleConfig(provider="chainlink"), "x")


class TestBuildLedger:
    def test_registers_every_asset(
        self, ledger: CreditLedger, markets: dict[str, InMemoryMarket]
    ) -> None:
        assert len(ledger.registry) == 3
        assert ledger.resolve_adapter("USDT") is markets["USDT"]
        assert ledger.registry.resolve("USDT").decimals == 6
        assert not ledger.registry.is_stable("BTC")
        assert ledger.global_credit_ceiling == 10**9 * WAD

    def test_production_collaborators_by_default(self, sample_app_config: AppConfig) -> None:
        ledger = build_ledger(sample_app_config)

        adapter = ledger.resolve_adapter("USDD")
        assert isinstance(adapter, RpcMarketAdapter)
        assert adapter.market == "0xcUSDD"
        assert adapter.account == "0xFACILITY"
        assert isinstance(ledger.registry.resolve("BTC").oracle, PythOracle)

    @pytest.mark.asyncio
    async def test_roles_from_config(self, ledger: CreditLedger) -> None:
        await ledger.register_user(REGISTRY, "0xNEW")
        await ledger.set_global_ceiling(ADMIN, 0)
        assert ledger.global_credit_ceiling == 0

    def test_explicit_authority(self, sample_app_config: AppConfig) -> None:
        authority = RoleAuthority(admins=["0xOTHER"])
        ledger = build_ledger(
            replace(sample_app_config, assets={}), authority=authority
        )
        ledger.grant_role("0xOTHER", "registrar", "0xR2")
        assert authority.has_role("0xR2", "registrar")
