"""Per-label mutual exclusion for sequence allocation."""
from __future__ import annotations

import asyncio
import logging
import weakref

logger = logging.getLogger(__name__)


class LabelLockRegistry:
    """Hands out one :class:`asyncio.Lock` per label.

    A single registry must be shared by every allocator serving the same
    storage root; the container owns that instance. Entries are weak: a
    lock disappears once no holder or waiter references it, so the
    registry only tracks labels with allocations in progress.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock(self, label: str) -> asyncio.Lock:
        lock = self._locks.get(label)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[label] = lock
            logger.debug("Created allocation lock for label %s", label)
        return lock

    def __contains__(self, label: str) -> bool:
        return label in self._locks

    def __len__(self) -> int:
        return len(self._locks)
