"""Single-writer-per-key exclusivity for ledger rows."""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

logger = logging.getLogger(__name__)


class LedgerKey(NamedTuple):
    """Identity of one balance ledger row."""

    user_id: uuid.UUID
    policy_id: uuid.UUID
    year: int

    def sort_key(self) -> tuple[str, str, int]:
        return (str(self.user_id), str(self.policy_id), self.year)


class LedgerLockRegistry:
    """Hands out one asyncio.Lock per ledger key.

    Writers for the same key run one at a time; writers for different keys
    never wait on each other. Multi-key holders acquire in sorted key order so
    two operations touching overlapping keys cannot deadlock. A key's lock is
    dropped from the registry once nobody holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[LedgerKey, asyncio.Lock] = {}
        self._users: dict[LedgerKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: LedgerKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: LedgerKey) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, keys: Iterable[LedgerKey]) -> AsyncIterator[list[LedgerKey]]:
        """Hold the locks of every key for the duration of the block."""
        ordered = sorted(set(keys), key=LedgerKey.sort_key)
        acquired: list[LedgerKey] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    await lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append(key)
            logger.debug("Holding ledger locks %s", ordered)
            yield ordered
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._checkin(key)


_ledger_locks = LedgerLockRegistry()


def get_ledger_locks() -> LedgerLockRegistry:
    """Return the registry shared by every ledger writer in this process."""
    return _ledger_locks


def set_ledger_locks(registry: LedgerLockRegistry) -> None:
    """Swap the registry (for testing or to share one across app instances)."""
    global _ledger_locks
    _ledger_locks = registry
