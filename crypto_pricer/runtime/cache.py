"""
In-memory caches shared across threads.

LiveCache is a plain concurrent map with no eviction (the live service owns its
lifecycle). TTLCache expires entries after a fixed age and backs the
aggregating price service.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ReadWriteLock:
    """Many concurrent readers or one writer. Writers are not starved by readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class LiveCache(Generic[K, V]):
    """Thread-safe key/value store. No TTL, no eviction."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._data: Dict[K, V] = {}

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        with self._lock.read():
            return self._data.get(key, default)

    def set(self, key: K, value: V) -> None:
        with self._lock.write():
            self._data[key] = value

    def delete(self, key: K) -> None:
        with self._lock.write():
            self._data.pop(key, None)

    def keys(self) -> List[K]:
        with self._lock.read():
            return list(self._data)

    def values(self) -> List[V]:
        with self._lock.read():
            return list(self._data.values())

    def items(self) -> List[Tuple[K, V]]:
        with self._lock.read():
            return list(self._data.items())

    def clear(self) -> None:
        with self._lock.write():
            self._data.clear()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock.read():
            return key in self._data


class TTLCache(Generic[K, V]):
    """
    Cache entries expire `ttl_seconds` after they were stored.

    Ages are measured on a monotonic clock (injectable for tests). Expired
    entries are treated as absent and dropped on the next write.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_s = ttl_seconds
        self._clock = clock
        self._lock = ReadWriteLock()
        self._store: Dict[K, Tuple[V, float]] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_s

    def get(self, key: K) -> Optional[V]:
        with self._lock.read():
            entry = self._store.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if (self._clock() - stored_at) >= self._ttl_s:
            return None
        return value

    def put(self, key: K, value: V) -> None:
        now = self._clock()
        with self._lock.write():
            expired = [k for k, (_, ts) in self._store.items() if (now - ts) >= self._ttl_s]
            for k in expired:
                del self._store[k]
            self._store[key] = (value, now)

    def clear(self) -> None:
        with self._lock.write():
            self._store.clear()

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._store)
