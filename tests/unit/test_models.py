"""Unit tests for data models and the fixed-precision helpers."""
from __future__ import annotations

import dataclasses

import pytest

from credit_ledger.models import (
    CreditInfo,
    LedgerParameters,
    PoolAccounts,
    Position,
    SweepPolicy,
)
from credit_ledger.units import WAD, apply_bps, apply_percent, scale_to_wad


class TestScaleToWad:
    def test_identity_at_18(self) -> None:
        assert scale_to_wad(123, 18) == 123

    def test_scales_up(self) -> None:
        assert scale_to_wad(5_000_000, 6) == 5 * WAD

    def test_scales_down(self) -> None:
        assert scale_to_wad(10**20, 20) == WAD

    def test_scale_down_truncates(self) -> None:
        assert scale_to_wad(199, 20) == 1


class TestPercentHelpers:
    def test_apply_percent_floors(self) -> None:
        assert apply_percent(999, 70) == 699

    def test_apply_bps(self) -> None:
        assert apply_bps(10_000, 100) == 100
        assert apply_bps(99, 100) == 0


class TestPosition:
    def test_defaults(self) -> None:
        pos = Position()
        assert pos.deposited == 0
        assert pos.borrowed == 0
        assert pos.last_accrual_step is None

    def test_is_mutable(self) -> None:
        pos = Position()
        pos.deposited += 5
        assert pos.deposited == 5


class TestPoolAccounts:
    def test_dicts_not_shared(self) -> None:
        a, b = PoolAccounts(), PoolAccounts()
        a.collected_fees["USDD"] = 1
        assert b.collected_fees == {}


class TestLedgerParameters:
    def test_score_floor_is_half_baseline(self) -> None:
        assert LedgerParameters(baseline_score=500).score_floor == 250
        assert LedgerParameters(baseline_score=501).score_floor == 250

    def test_defaults(self) -> None:
        params = LedgerParameters()
        assert params.stable_collateral_factor == 70
        assert params.non_stable_collateral_factor == 50
        assert params.split_percent == 80
        assert params.sweep_thresholds == {}


class TestFrozenResults:
    def test_credit_info_frozen(self) -> None:
        info = CreditInfo(score=500, debt_used=0, capacity=0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.score = 1  # type: ignore[misc]

    def test_sweep_policy_defaults(self) -> None:
        policy = SweepPolicy()
        assert policy.convert_to is None
        assert policy.min_amount_out == 0
        assert policy.deadline_steps == 20
