"""Operation guard — in-flight flag plus checkpoint/rollback per critical section."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .errors import ReentrantCall
from .store import LedgerStore

logger = logging.getLogger(__name__)


class OperationGuard:
    """Serializes ledger operations and makes each one all-or-nothing.

    Entering while another operation is outstanding (e.g. a collaborator
    calling back into the ledger during an awaited external call) raises
    ``ReentrantCall``. A failing body restores the store to the checkpoint
    taken on entry. The flag is cleared on every exit path.
    """

    def __init__(self, store: LedgerStore) -> None:
        self._store = store
        self._in_flight: str | None = None

    @property
    def in_flight(self) -> str | None:
        return self._in_flight

    @asynccontextmanager
    async def section(self, name: str) -> AsyncIterator[None]:
        if self._in_flight is not None:
            raise ReentrantCall(
                f"'{name}' rejected: '{self._in_flight}' is still in flight"
            )
        self._in_flight = name
        checkpoint = self._store.checkpoint()
        try:
            yield
        except BaseException:
            self._store.rollback(checkpoint)
            logger.debug("Rolled back '%s'", name)
            raise
        else:
            self._store.commit()
        finally:
            self._in_flight = None
