"""Credit score engine — behavioral score, decay and score-derived capacity."""
from __future__ import annotations

import logging

from ..errors import UnknownUser, UserAlreadyRegistered
from ..models import CreditInfo, CreditProfile
from ..store import LedgerStore
from ..units import BASIS_POINTS, WAD

logger = logging.getLogger(__name__)


class CreditScoreEngine:
    """Per-user score state machine.

    The score lives in ``[baseline // 2, max_score]``. Borrow events lower it
    by the borrow step, repay events raise it by the repay step, and only
    repays count as positive events. Both step sizes shrink for users whose
    last positive event is older than the decay threshold.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def is_registered(self, user: str) -> bool:
        return self._store.has_profile(user)

    def register(self, user: str, step: int, implicit: bool = False) -> CreditProfile:
        """Open a profile at the baseline score.

        The membership registry may confirm a profile that a first facility
        borrow opened implicitly; the profile keeps its history.
        """
        existing = self._store.profile(user)
        if existing is not None:
            if implicit or not existing.implicit:
                raise UserAlreadyRegistered(f"'{user}' already has a credit profile")
            existing.implicit = False
            self._store.emit(step, "register", user=user, score=existing.score, confirmed=True)
            logger.info("Confirmed implicit profile of %s at score %d", user, existing.score)
            return existing
        profile = CreditProfile(
            score=self._store.params.baseline_score,
            last_update_step=step,
            last_positive_event_step=step,
            implicit=implicit,
        )
        self._store.add_profile(user, profile)
        self._store.emit(step, "register", user=user, score=profile.score)
        logger.info("Registered %s at score %d", user, profile.score)
        return profile

    def profile(self, user: str) -> CreditProfile:
        profile = self._store.profile(user)
        if profile is None:
            raise UnknownUser(f"'{user}' has no credit profile")
        return profile

    # ------------------------------------------------------------------
    # Score transitions
    # ------------------------------------------------------------------

    def decayed_step(self, profile: CreditProfile, base_step: int, step: int) -> int:
        """Shrink ``base_step`` by inactivity since the last positive event.

        Within threshold * 4/3 the step is unchanged, up to 2 * threshold it
        is halved, beyond that it is quartered. A zero threshold disables it.
        """
        threshold = self._store.params.decay_threshold_steps
        if threshold <= 0:
            return base_step
        elapsed = step - profile.last_positive_event_step
        if elapsed * 3 <= threshold * 4:
            return base_step
        if elapsed <= threshold * 2:
            return base_step // 2
        return base_step // 4

    def _clamp(self, score: int) -> int:
        params = self._store.params
        return max(params.score_floor, min(score, params.max_score))

    def record_borrow(
        self, user: str, value: int, step: int, pooled: bool = False
    ) -> CreditProfile:
        """Apply a borrow of ``value`` (value units) to the user's profile."""
        profile = self.profile(user)
        delta = self.decayed_step(profile, self._store.params.borrow_step, step)
        profile.score = self._clamp(profile.score - delta)
        profile.debt_used += value
        if pooled:
            profile.pooled_debt += value
        profile.last_update_step = step
        self._store.pool.total_credit_used += value
        logger.debug("Borrow by %s: score -%d → %d", user, delta, profile.score)
        return profile

    def record_repay(
        self, user: str, value: int, step: int, pooled: bool = False
    ) -> CreditProfile:
        """Apply a repayment releasing ``value`` (value units) of credit used.

        Pooled and facility repayments each release only their own share of
        ``debt_used``; neither can pay down the other.
        """
        profile = self.profile(user)
        delta = self.decayed_step(profile, self._store.params.repay_step, step)
        profile.score = self._clamp(profile.score + delta)
        if pooled:
            released = min(value, profile.pooled_debt)
            profile.pooled_debt -= released
        else:
            released = min(value, profile.debt_used - profile.pooled_debt)
        profile.debt_used -= released
        profile.last_update_step = step
        profile.last_positive_event_step = step
        pool = self._store.pool
        pool.total_credit_used = max(pool.total_credit_used - released, 0)
        logger.debug("Repay by %s: score +%d → %d", user, delta, profile.score)
        return profile

    def admin_adjust(self, user: str, delta: int, boost_factor: int, step: int) -> CreditProfile:
        """Add or subtract ``delta`` and set the boost factor in one step."""
        if boost_factor < 1:
            raise ValueError("Boost factor must be a positive integer")
        profile = self.profile(user)
        profile.score = self._clamp(profile.score + delta)
        profile.boost_factor = boost_factor
        profile.last_update_step = step
        self._store.emit(
            step, "credit_adjusted", user=user, delta=delta, boost_factor=boost_factor
        )
        logger.info(
            "Credit of %s adjusted by %d (boost %d) → %d",
            user,
            delta,
            boost_factor,
            profile.score,
        )
        return profile

    def set_score_steps(self, borrow_step: int, repay_step: int) -> None:
        if borrow_step < 0 or repay_step < 0:
            raise ValueError("Score steps must be non-negative")
        self._store.params.borrow_step = borrow_step
        self._store.params.repay_step = repay_step

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def borrowing_capacity(self, user: str) -> int:
        profile = self.profile(user)
        return (
            profile.score
            * self._store.params.borrowing_multiplier_bps
            * profile.boost_factor
            * WAD
            // BASIS_POINTS
        )

    def credit_info(self, user: str) -> CreditInfo:
        profile = self.profile(user)
        return CreditInfo(
            score=profile.score,
            debt_used=profile.debt_used,
            capacity=self.borrowing_capacity(user),
            pooled_debt=profile.pooled_debt,
        )
