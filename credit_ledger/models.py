"""Data models — descriptors and results are frozen, ledger records are mutable."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .interfaces.market_adapter import MarketAdapter
from .interfaces.price_oracle import PriceOracle


@dataclass(frozen=True)
class AssetDescriptor:
    """Registered asset: wrapped-position adapter, precision and valuation path."""

    asset: str
    adapter: MarketAdapter
    decimals: int
    stable: bool
    oracle: PriceOracle | None = None


@dataclass
class Position:
    """Per (user, asset) record. Created lazily, never deleted.

    ``borrowed`` includes accrued interest; ``principal`` is the part of it
    that was drawn and still counts as credit used.
    """

    deposited: int = 0
    borrowed: int = 0
    principal: int = 0
    last_accrual_step: int | None = None


@dataclass
class CreditProfile:
    """Per-user credit score state. Amounts are in value units.

    ``debt_used`` covers facility principal and pooled credit; ``pooled_debt``
    is the pooled part of it. ``implicit`` marks profiles opened by a first
    facility borrow rather than by the membership registry.
    """

    score: int
    last_update_step: int
    last_positive_event_step: int
    debt_used: int = 0
    pooled_debt: int = 0
    boost_factor: int = 1
    implicit: bool = False


@dataclass
class PoolAccounts:
    collected_fees: dict[str, int] = field(default_factory=dict)
    manager_pool: dict[str, int] = field(default_factory=dict)
    total_credit_used: int = 0
    global_credit_ceiling: int = 0


@dataclass(frozen=True)
class CreditInfo:
    score: int
    debt_used: int
    capacity: int
    pooled_debt: int = 0


@dataclass(frozen=True)
class InflowSplit:
    """How a single inflow was divided between the two destinations."""

    facility_share: int
    manager_share: int
    commission: int = 0


@dataclass(frozen=True)
class SweepPolicy:
    """Optional conversion applied to swept funds before they are supplied.

    ``min_amount_out`` is checked against the final leg of the swap;
    ``deadline_steps`` is added to the current step to form the venue deadline.
    """

    convert_to: str | None = None
    min_amount_out: int = 0
    deadline_steps: int = 20


@dataclass(frozen=True)
class SweepResult:
    asset: str
    swept: int
    supplied_asset: str = ""
    supplied_amount: int = 0


@dataclass(frozen=True)
class LedgerEvent:
    step: int
    kind: str
    user: str | None = None
    asset: str | None = None
    amount: int | None = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class LedgerParameters:
    """Admin-tunable parameters, seeded from configuration."""

    stable_collateral_factor: int = 70
    non_stable_collateral_factor: int = 50
    rate_delta_bps: int = 0
    repay_fee_bps: int = 0
    baseline_score: int = 500
    max_score: int = 1000
    borrow_step: int = 6
    repay_step: int = 4
    decay_threshold_steps: int = 0
    borrowing_multiplier_bps: int = 10_000
    split_percent: int = 80
    commission_percent: int = 0
    sweep_thresholds: dict[str, int] = field(default_factory=dict)
    pool_holder: str = "credit-pool"

    @property
    def score_floor(self) -> int:
        return self.baseline_score // 2
