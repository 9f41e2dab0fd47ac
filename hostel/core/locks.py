"""
Per-key mutual exclusion for allocation decisions.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """Raised when a keyed lock cannot be acquired in time."""


class KeyedLock:
    """
    A family of locks addressed by string keys.

    Locks are created on first use and dropped once nobody holds or waits
    for them, so the registry stays as small as the set of keys in flight.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _release(self, key: str) -> None:
        with self._guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    @contextmanager
    def hold(self, *keys: str, timeout: float = -1) -> Iterator[None]:
        """
        Hold the locks for ``keys`` in the order given.

        Callers must pass keys in a fixed order (e.g. user before bed) so two
        holders can never wait on each other.
        """
        acquired: list[tuple[str, threading.Lock]] = []
        try:
            for key in keys:
                lock = self._checkout(key)
                if not lock.acquire(timeout=timeout):
                    self._release(key)
                    logger.error(f"Timed out waiting for allocation lock {key}")
                    raise LockTimeout(key)
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._release(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
