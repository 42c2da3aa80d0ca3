from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Arena of mutexes keyed by an arbitrary hashable (e.g. ``(user_id, work_date)``).

    A lock lives only while someone holds or waits on it, so the arena does not
    grow with the number of distinct keys ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            self._waiters[key] = self._waiters.get(key, 0) + 1

        lock.acquire()
        logger.debug("Acquired lock for %r", key)
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
