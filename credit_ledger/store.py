"""Single owned ledger store — every mutable record lives here."""
from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any

from .models import CreditProfile, LedgerEvent, LedgerParameters, PoolAccounts, Position


class EventLog:
    """Bounded log of committed ledger events."""

    def __init__(self, maxlen: int | None = None) -> None:
        self.events: deque[LedgerEvent] = deque(maxlen=maxlen)

    def add(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def tail(self, n: int = 200) -> list[LedgerEvent]:
        if n <= 0:
            return []
        if n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def __len__(self) -> int:
        return len(self.events)


@dataclass
class Checkpoint:
    """Undo journal for one operation.

    Pool accounts and parameters are small and copied whole on entry.
    Positions and profiles keep the pre-image of each record the first time
    it is handed out for update; ``None`` marks a record that did not exist.
    """

    pool: PoolAccounts
    params: LedgerParameters
    positions: dict[tuple[str, str], Position | None] = field(default_factory=dict)
    profiles: dict[str, CreditProfile | None] = field(default_factory=dict)


class LedgerStore:
    """Arena of per-user, per-asset records keyed by composite identifiers."""

    def __init__(
        self, params: LedgerParameters | None = None, event_log_size: int | None = None
    ) -> None:
        self.positions: dict[tuple[str, str], Position] = {}
        self.profiles: dict[str, CreditProfile] = {}
        self.pool = PoolAccounts()
        self.params = params or LedgerParameters()
        self.events = EventLog(event_log_size)
        self._pending: list[LedgerEvent] = []
        self._journal: Checkpoint | None = None

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def position(self, user: str, asset: str) -> Position:
        """Return the (user, asset) position for update, creating it on first touch."""
        key = (user, asset)
        pos = self.positions.get(key)
        if self._journal is not None and key not in self._journal.positions:
            self._journal.positions[key] = replace(pos) if pos is not None else None
        if pos is None:
            pos = Position()
            self.positions[key] = pos
        return pos

    def peek_position(self, user: str, asset: str) -> Position:
        """Read-only view of the position (a zeroed record if absent)."""
        return self.positions.get((user, asset)) or Position()

    def user_positions(self, user: str) -> dict[str, Position]:
        return {a: p for (u, a), p in self.positions.items() if u == user}

    # ------------------------------------------------------------------
    # Credit profiles
    # ------------------------------------------------------------------

    def has_profile(self, user: str) -> bool:
        return user in self.profiles

    def profile(self, user: str) -> CreditProfile | None:
        """Return the user's profile for update, or ``None`` if absent."""
        profile = self.profiles.get(user)
        if (
            profile is not None
            and self._journal is not None
            and user not in self._journal.profiles
        ):
            self._journal.profiles[user] = replace(profile)
        return profile

    def add_profile(self, user: str, profile: CreditProfile) -> None:
        if self._journal is not None and user not in self._journal.profiles:
            self._journal.profiles[user] = None
        self.profiles[user] = profile

    def emit(
        self,
        step: int,
        kind: str,
        user: str | None = None,
        asset: str | None = None,
        amount: int | None = None,
        **meta: Any,
    ) -> None:
        """Stage an event; it becomes visible only when the operation commits."""
        self._pending.append(
            LedgerEvent(step=step, kind=kind, user=user, asset=asset, amount=amount, meta=meta)
        )

    # ------------------------------------------------------------------
    # All-or-nothing support
    # ------------------------------------------------------------------

    def checkpoint(self) -> Checkpoint:
        """Open an undo journal; records touched from now on can be restored."""
        self._journal = Checkpoint(
            pool=copy.deepcopy(self.pool), params=copy.deepcopy(self.params)
        )
        return self._journal

    def rollback(self, checkpoint: Checkpoint) -> None:
        for key, before in checkpoint.positions.items():
            if before is None:
                self.positions.pop(key, None)
            else:
                self.positions[key] = before
        for user, before in checkpoint.profiles.items():
            if before is None:
                self.profiles.pop(user, None)
            else:
                self.profiles[user] = before
        self.pool = checkpoint.pool
        self.params = checkpoint.params
        self._pending.clear()
        self._journal = None

    def commit(self) -> None:
        for event in self._pending:
            self.events.add(event)
        self._pending.clear()
        self._journal = None
