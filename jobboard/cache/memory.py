"""In-process TTL cache for development, tests and single-worker deployments."""

from __future__ import annotations

import heapq
import threading
import time
from typing import Callable

from jobboard.cache.base import Cache


class MemoryCache(Cache):
    """Dict-backed cache.

    Expired entries are swept on write at most once per `purge_interval_seconds`, and
    the map never holds more than `max_entries`: when full, the entries closest to
    expiry are evicted first.
    """

    name = "memory"

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        *,
        max_entries: int = 10_000,
        purge_interval_seconds: float = 30.0,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._entries: dict[str, tuple[float, bytes]] = {}
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._max_entries = max_entries
        self._purge_interval = purge_interval_seconds
        self._next_purge = clock() + purge_interval_seconds

    def get_bytes(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set_bytes(self, key: str, value: bytes, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            if now >= self._next_purge:
                self._purge_expired(now)
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._purge_expired(now)
                if len(self._entries) >= self._max_entries:
                    self._evict_soonest()
            self._entries[key] = (now + ttl_seconds, value)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def generation(self, namespace: str) -> int:
        with self._lock:
            return self._generations.get(namespace, 0)

    def bump_generation(self, namespace: str) -> int:
        with self._lock:
            value = self._generations.get(namespace, 0) + 1
            self._generations[namespace] = value
            return value

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for expires_at, _ in self._entries.values() if expires_at > now)

    # Callers hold self._lock.

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._next_purge = now + self._purge_interval

    def _evict_soonest(self) -> None:
        count = max(1, self._max_entries // 10)
        doomed = heapq.nsmallest(count, self._entries, key=lambda k: self._entries[k][0])
        for key in doomed:
            del self._entries[key]
