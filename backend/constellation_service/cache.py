"""In-process TTL cache for harvested catalogue data."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    stored_at: float


class TTLCache(Generic[K, V]):
    """Time-bounded memoisation keyed by ``K``.

    Entries are valid while ``clock() - stored_at < ttl_seconds``. Expired
    entries read as a miss and are dropped lazily; ``put`` replaces an entry
    unconditionally. The clock is injectable so tests can move time forward.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.time, name: str = "cache"):
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            age = now - entry.stored_at
            if age >= self.ttl_seconds:
                del self._entries[key]
                logger.debug("Cache '%s' entry %r expired (%.0fs old, TTL %.0fs)", self.name, key, age, self.ttl_seconds)
                return None
            return entry.value

    def put(self, key: K, value: V) -> None:
        entry = CacheEntry(value=value, stored_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def age(self, key: K) -> float | None:
        """Seconds since ``key`` was stored, or None if absent/expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or now - entry.stored_at >= self.ttl_seconds:
            return None
        return now - entry.stored_at

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
