"""
Operation lock for the campaign ledger.

Serializes ledger operations so every caller observes them in a single total
order. The task holding the lock may enter it again: a payout that calls back
into the ledger runs against the state its outer operation already committed
instead of deadlocking.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class LedgerLock:
    """
    Re-entrant (per task) mutual exclusion around ledger operations.

    Re-entry is recognized only for the task that holds the lock. A payout
    that hands work to a different task and waits for it would block.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None
        self._depth = 0

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def depth(self) -> int:
        """Nesting level of the current holder; 0 when free."""
        return self._depth

    @asynccontextmanager
    async def hold(self, operation: str) -> AsyncIterator[None]:
        task = asyncio.current_task()

        if task is not None and self._owner is task:
            self._depth += 1
            logger.debug(f"Re-entered ledger lock for {operation} (depth {self._depth})")
            try:
                yield
            finally:
                self._depth -= 1
            return

        await self._lock.acquire()
        self._owner = task
        self._depth = 1
        logger.debug(f"Acquired ledger lock for {operation}")
        try:
            yield
        finally:
            self._depth = 0
            self._owner = None
            self._lock.release()
            logger.debug(f"Released ledger lock for {operation}")
