"""Cache store boundary and an in-process implementation."""

import math
import threading
from typing import Any, Protocol

from cachetools import TLRUCache

from fbjwt.core.clock import Clock, SystemClock


class CacheItem:
    """A store-managed entry: key, value, hit flag and optional TTL."""

    def __init__(self, key: str, value: Any = None, *, hit: bool = False) -> None:
        self.key = key
        self._value = value
        self._hit = hit
        self.ttl_seconds: int | None = None

    def is_hit(self) -> bool:
        return self._hit

    def get(self) -> Any:
        return self._value if self._hit else None

    def set(self, value: Any) -> "CacheItem":
        self._value = value
        return self

    def expires_after(self, seconds: int | None) -> "CacheItem":
        self.ttl_seconds = seconds
        return self

    @property
    def pending_value(self) -> Any:
        """Value to persist on save, regardless of hit state."""
        return self._value


class CacheStore(Protocol):
    """Key-value cache with atomic per-key get and save."""

    def get_item(self, key: str) -> CacheItem: ...

    def save(self, item: CacheItem) -> bool: ...


IN_MEMORY_MAXSIZE_DEFAULT = 1024


def _time_to_use(key: str, entry: tuple[Any, int | None], now: float) -> float:
    _, ttl_seconds = entry
    if ttl_seconds is None:
        return math.inf
    return now + ttl_seconds


class InMemoryCacheStore:
    """Process-local store on a ``cachetools.TLRUCache`` with per-entry TTL.

    Entries are ``(value, ttl_seconds)`` pairs so the TTL travels with the
    value. The cache itself is not thread-safe, hence the lock.
    """

    def __init__(
        self, clock: Clock | None = None, maxsize: int = IN_MEMORY_MAXSIZE_DEFAULT
    ) -> None:
        self._clock = clock or SystemClock()
        self._entries: TLRUCache[str, tuple[Any, int | None]] = TLRUCache(
            maxsize=maxsize,
            ttu=_time_to_use,
            timer=lambda: self._clock.now().timestamp(),
        )
        self._lock = threading.Lock()

    def get_item(self, key: str) -> CacheItem:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return CacheItem(key)
        return CacheItem(key, entry[0], hit=True)

    def save(self, item: CacheItem) -> bool:
        with self._lock:
            self._entries[item.key] = (item.pending_value, item.ttl_seconds)
        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
