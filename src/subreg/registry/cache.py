"""Bounded TTL cache with oldest-entry eviction."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    timestamp: float


class TTLCache(Generic[V]):
    """Thread-safe map with a capacity bound and time-based expiry.

    Each entry is stamped when it is stored. Reads never refresh the stamp:
    when a new key arrives and the cache is full, the entry with the oldest
    stamp is evicted, whether or not it was read recently. Expired entries
    are dropped lazily on access; there is no background sweeper.
    """

    def __init__(
        self,
        capacity: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.capacity = max(1, capacity)
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[V]] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> V | None:
        """Return the cached value, or None on a miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: V) -> None:
        """Store a value, evicting the oldest entry if a new key overflows."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._evict_oldest()
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value=value, timestamp=self._clock())

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries.keys())

    def _evict_oldest(self) -> None:
        # min() keeps the first of equal stamps, which is the earlier insert
        oldest = min(self._entries, key=lambda k: self._entries[k].timestamp)
        del self._entries[oldest]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
