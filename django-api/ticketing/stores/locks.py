"""Per-key mutual exclusion for the in-memory stores."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    """Registry of reentrant locks, one per key.

    Locks are created on first use and kept for the lifetime of the
    registry; keys are user and session ids, which are bounded by the data
    the store already holds.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._lock_for(key):
            yield
