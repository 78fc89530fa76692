from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, Tuple


class KeyedLock:
    """
    One re-entrant lock per account key.

    Wrapping a fetch/compute/write cycle in `hold(key)` serializes every
    operation on that account within this process, which is what keeps
    `wallet >= 0` and `bank <= bank_capacity` sound under concurrent calls.
    Locks are never evicted; the map grows with the number of distinct keys.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: Tuple[str, str]) -> Iterator[None]:
        # Sorted acquisition so two transfers in opposite directions
        # cannot deadlock.
        ordered = sorted(set(keys))
        acquired = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


class NullLock:
    """Drop-in for `KeyedLock` that performs no synchronization."""

    @contextmanager
    def hold(self, *keys: Tuple[str, str]) -> Iterator[None]:
        yield
