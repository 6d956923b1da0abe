"""Per-account mutual exclusion for the check-then-insert critical section."""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from cashbook.core.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class AccountLockRegistry:
    """Keyed ``asyncio.Lock`` per account.

    Calls for different accounts never contend. Locks are dropped once no
    coroutine holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, account_id: str) -> asyncio.Lock:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, account_id: str, timeout: float | None = None) -> AsyncIterator[None]:
        """Hold the account's lock for the duration of the block.

        Raises:
            LockTimeoutError: If the lock is not acquired within ``timeout`` seconds
        """
        lock = self._lock_for(account_id)
        try:
            async with asyncio.timeout(timeout):
                await lock.acquire()
        except TimeoutError as e:
            logger.warning(f"Timed out waiting for lock on account {account_id}")
            raise LockTimeoutError(account_id, timeout or 0) from e
        try:
            yield
        finally:
            lock.release()


# Process-wide default, shared by every LedgerService built without one
account_locks = AccountLockRegistry()
