"""Thread-safe in-memory TTL cache."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Generic, TypeVar

T = TypeVar("T")

QUOTE_TTL_SECONDS = 30.0
ATH_TTL_SECONDS = 24 * 60 * 60.0


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float  # clock() seconds


class TTLCache(Generic[T]):
    """Key-value store whose entries go stale `ttl` seconds after being set.

    Two instances back StockDataService: one for quotes (short TTL), one for
    all-time highs (long TTL). Expired entries are not purged; they read as a
    miss until the next set() replaces them. The key space is the small fixed
    set of supported symbols, so growth is bounded in practice.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.time) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> T | None:
        """Return the value for key if it was set less than ttl seconds ago."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() - entry.stored_at >= self._ttl:
                return None
            return entry.value

    def set(self, key: str, value: T) -> None:
        """Store value under key, replacing any previous entry (last write wins)."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of stored entries, including stale ones."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
