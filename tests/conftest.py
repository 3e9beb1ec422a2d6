"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from credit_ledger.config import (
    AccessConfig,
    AppConfig,
    AssetConfig,
    CreditConfig,
    LedgerConfig,
    PriceOracleConfig,
    PythConfig,
    RouterConfig,
    RpcConfig,
)
from credit_ledger.factory import build_ledger
from credit_ledger.ledger import CreditLedger
from credit_ledger.simulated import (
    FixedPriceOracle,
    InMemoryMarket,
    InMemorySwapVenue,
    InMemoryTokenBank,
    ManualClock,
)
from credit_ledger.units import WAD

from tests.helpers import ADMIN, POOL, REGISTRY, usdd


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        ledger=LedgerConfig(
            stable_collateral_factor=70,
            non_stable_collateral_factor=50,
            rate_delta_bps=0,
            repay_fee_bps=0,
            event_log_size=1000,
        ),
        credit=CreditConfig(
            baseline_score=500,
            max_score=1000,
            borrow_step=6,
            repay_step=4,
            decay_threshold_steps=0,
            borrowing_multiplier_bps=10_000,
            global_credit_ceiling=10**9 * WAD,
        ),
        router=RouterConfig(
            split_percent=80,
            commission_percent=8,
            pool_holder=POOL,
            sweep_thresholds={"USDD": usdd(500)},
        ),
        access=AccessConfig(admins=(ADMIN,), registrars=(REGISTRY,)),
        rpc=RpcConfig(
            endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            timeout=10,
            facility_account="0xFACILITY",
            swap_router="0xROUTER",
        ),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            pyth=PythConfig(hermes_url="https://hermes.example.com"),
        ),
        assets={
            "USDD": AssetConfig(market="0xcUSDD", token="0xUSDD", decimals=18, stable=True),
            "USDT": AssetConfig(market="0xcUSDT", token="0xUSDT", decimals=6, stable=True),
            "BTC": AssetConfig(
                market="0xcBTC", token="0xBTC", decimals=8, stable=False, price_feed="btcfeed"
            ),
        },
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(step=100)


@pytest.fixture()
def bank() -> InMemoryTokenBank:
    return InMemoryTokenBank()


@pytest.fixture()
def venue() -> InMemorySwapVenue:
    # 1 USDT (6 dp) → 10**12 USDD base units, i.e. 1:1 in whole tokens
    return InMemorySwapVenue(rates={("USDT", "USDD"): 10**12 * WAD})


@pytest.fixture()
def markets() -> dict[str, InMemoryMarket]:
    return {
        "USDD": InMemoryMarket(),
        "USDT": InMemoryMarket(),
        "BTC": InMemoryMarket(),
    }


@pytest.fixture()
def btc_oracle() -> FixedPriceOracle:
    # $60,000 with 8 price decimals
    return FixedPriceOracle(price=60_000 * 10**8, decimals=8)


@pytest.fixture()
def ledger(
    sample_app_config: AppConfig,
    clock: ManualClock,
    bank: InMemoryTokenBank,
    venue: InMemorySwapVenue,
    markets: dict[str, InMemoryMarket],
    btc_oracle: FixedPriceOracle,
) -> CreditLedger:
    return build_ledger(
        sample_app_config,
        clock=clock,
        bank=bank,
        venue=venue,
        adapters=markets,
        oracles={"BTC": btc_oracle},
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    ledger:
      stable_collateral_factor: 70
      non_stable_collateral_factor: 50
      rate_delta_bps: 500
      repay_fee_bps: 100
    credit:
      baseline_score: 500
      max_score: 1000
      borrow_step: 6
      repay_step: 4
      decay_threshold_steps: 300
      global_credit_ceiling: "1000000000000000000000000"
    router:
      split_percent: 80
      commission_percent: 8
      pool_holder: credit-pool
      sweep_thresholds: {USDD: "500000000000000000000"}
    access:
      admins: ["0xADMIN"]
      registrars: ["0xREGISTRY"]
    rpc:
      endpoints: ["https://rpc.example.com"]
      timeout: 10
      facility_account: "0xFACILITY"
      swap_router: "0xROUTER"
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        max_age_seconds: 30
    assets:
      USDD: {market: "0xcUSDD", token: "0xUSDD", decimals: 18, stable: true}
      BTC: {market: "0xcBTC", decimals: 8, stable: false, price_feed: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
