"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    stable_collateral_factor: int = 70
    non_stable_collateral_factor: int = 50
    rate_delta_bps: int = 0
    repay_fee_bps: int = 0
    event_log_size: int = 10_000


@dataclass(frozen=True)
class CreditConfig:
    baseline_score: int = 500
    max_score: int = 1000
    borrow_step: int = 6
    repay_step: int = 4
    decay_threshold_steps: int = 0
    borrowing_multiplier_bps: int = 10_000
    global_credit_ceiling: int = 0


@dataclass(frozen=True)
class RouterConfig:
    split_percent: int = 80
    commission_percent: int = 0
    pool_holder: str = "credit-pool"
    sweep_thresholds: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AccessConfig:
    admins: tuple[str, ...] = ()
    registrars: tuple[str, ...] = ()


@dataclass(frozen=True)
class RpcConfig:
    endpoints: tuple[str, ...] = ()
    timeout: int = 30
    facility_account: str = ""
    swap_router: str = ""


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    max_age_seconds: int = 60


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AssetConfig:
    market: str = ""
    token: str = ""
    decimals: int = 18
    stable: bool = True
    price_feed: str = ""


@dataclass(frozen=True)
class AppConfig:
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    credit: CreditConfig = field(default_factory=CreditConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    access: AccessConfig = field(default_factory=AccessConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    assets: dict[str, AssetConfig] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_ledger(raw: dict[str, Any]) -> LedgerConfig:
    return LedgerConfig(
        stable_collateral_factor=int(raw.get("stable_collateral_factor", 70)),
        non_stable_collateral_factor=int(raw.get("non_stable_collateral_factor", 50)),
        rate_delta_bps=int(raw.get("rate_delta_bps", 0)),
        repay_fee_bps=int(raw.get("repay_fee_bps", 0)),
        event_log_size=int(raw.get("event_log_size", 10_000)),
    )


def _build_credit(raw: dict[str, Any]) -> CreditConfig:
    return CreditConfig(
        baseline_score=int(raw.get("baseline_score", 500)),
        max_score=int(raw.get("max_score", 1000)),
        borrow_step=int(raw.get("borrow_step", 6)),
        repay_step=int(raw.get("repay_step", 4)),
        decay_threshold_steps=int(raw.get("decay_threshold_steps", 0)),
        borrowing_multiplier_bps=int(raw.get("borrowing_multiplier_bps", 10_000)),
        # Large integers may be quoted in YAML; int() accepts both forms.
        global_credit_ceiling=int(raw.get("global_credit_ceiling", 0)),
    )


def _build_router(raw: dict[str, Any]) -> RouterConfig:
    return RouterConfig(
        split_percent=int(raw.get("split_percent", 80)),
        commission_percent=int(raw.get("commission_percent", 0)),
        pool_holder=raw.get("pool_holder", "credit-pool"),
        sweep_thresholds={
            asset: int(v) for asset, v in (raw.get("sweep_thresholds") or {}).items()
        },
    )


def _build_access(raw: dict[str, Any]) -> AccessConfig:
    return AccessConfig(
        admins=tuple(raw.get("admins", [])),
        registrars=tuple(raw.get("registrars", [])),
    )


def _build_rpc(raw: dict[str, Any]) -> RpcConfig:
    return RpcConfig(
        endpoints=tuple(raw.get("endpoints", [])),
        timeout=int(raw.get("timeout", 30)),
        facility_account=raw.get("facility_account", ""),
        swap_router=raw.get("swap_router", ""),
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            max_age_seconds=int(pyth_raw.get("max_age_seconds", PythConfig.max_age_seconds)),
        ),
    )


def _build_assets(raw: dict[str, Any]) -> dict[str, AssetConfig]:
    assets: dict[str, AssetConfig] = {}
    for name, cfg in raw.items():
        assets[name] = AssetConfig(
            market=cfg.get("market", ""),
            token=cfg.get("token", ""),
            decimals=int(cfg.get("decimals", 18)),
            stable=bool(cfg.get("stable", True)),
            price_feed=cfg.get("price_feed", ""),
        )
    return assets


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate ledger configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        ledger=_build_ledger(raw.get("ledger", {})),
        credit=_build_credit(raw.get("credit", {})),
        router=_build_router(raw.get("router", {})),
        access=_build_access(raw.get("access", {})),
        rpc=_build_rpc(raw.get("rpc", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        assets=_build_assets(raw.get("assets", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _require_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be within [{low}, {high}], got {value}")


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.access.admins:
        raise ValueError("At least one admin must be configured")

    _require_range("stable_collateral_factor", cfg.ledger.stable_collateral_factor, 1, 100)
    _require_range(
        "non_stable_collateral_factor", cfg.ledger.non_stable_collateral_factor, 1, 100
    )
    _require_range("repay_fee_bps", cfg.ledger.repay_fee_bps, 0, 10_000)
    if cfg.ledger.rate_delta_bps < 0:
        raise ValueError("rate_delta_bps must be non-negative")

    credit = cfg.credit
    if credit.baseline_score <= 0:
        raise ValueError("baseline_score must be positive")
    if credit.max_score < credit.baseline_score:
        raise ValueError("max_score must not be below baseline_score")
    if credit.borrow_step < 0 or credit.repay_step < 0:
        raise ValueError("Score steps must be non-negative")
    if credit.borrowing_multiplier_bps <= 0:
        raise ValueError("borrowing_multiplier_bps must be positive")
    if credit.global_credit_ceiling < 0:
        raise ValueError("global_credit_ceiling must be non-negative")

    _require_range("split_percent", cfg.router.split_percent, 0, 100)
    _require_range("commission_percent", cfg.router.commission_percent, 0, 100)
    if not cfg.router.pool_holder:
        raise ValueError("router.pool_holder must be set")
    for asset in cfg.router.sweep_thresholds:
        if asset not in cfg.assets:
            raise ValueError(f"Sweep threshold references unknown asset '{asset}'")

    for name, asset in cfg.assets.items():
        if asset.decimals < 0:
            raise ValueError(f"Asset '{name}' has negative decimals")
        if not asset.stable and not asset.price_feed:
            raise ValueError(f"Non-stable asset '{name}' has no price_feed")
