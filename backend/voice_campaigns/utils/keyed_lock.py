"""
Keyed Lock
One mutex per identity, created on demand and dropped when unused
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLock:
    """
    Mutual exclusion scoped to a key (campaign id, lead id, ...).

    Holders of different keys never block each other. Entries are
    reference counted so the table does not grow with every id ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
                self._waiters[key] = 0
            self._waiters[key] += 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]
