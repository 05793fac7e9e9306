"""
In-memory result cache with TTL and a size bound.

Entries expire lazily: a read of an expired key removes it and reports a
miss. When a write pushes the cache over max_entries, expired entries are
swept first, then the oldest entries (by stored_at) are evicted until the
cache is back within bounds. All mutations happen under one lock.
"""

import threading
import time
from typing import Callable, Optional

import structlog

from hybrid_inference.models.result_models import CacheEntry
from hybrid_inference.monitoring.metrics import cache_evictions_total, cache_lookups_total

logger = structlog.get_logger(__name__)


class ResultCache:
    """
    Fingerprint -> CacheEntry store.

    Example:
        cache = ResultCache(ttl_seconds=3600, max_entries=1000)
        cache.put(key, CacheEntry(result=r, confidence=r.confidence, stored_at=cache.now(), tier_version="primary:gpt-4o-mini"))
        entry = cache.get(key)
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

        logger.info("Result cache initialized", ttl_seconds=ttl_seconds, max_entries=max_entries)

    def now(self) -> float:
        """Current reading of the cache clock."""
        return self._clock()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[CacheEntry]:
        """Entry for key, or None if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                result = "miss"
            elif self._is_expired(entry, now):
                del self._entries[key]
                entry = None
                result = "expired"
            else:
                result = "hit"

        cache_lookups_total.labels(result=result).inc()
        logger.debug("Cache lookup", key=key, result=result)
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store (or replace) an entry, evicting if over capacity."""
        with self._lock:
            self._entries[key] = entry
            if len(self._entries) <= self.max_entries:
                return

            expired = self._sweep_expired(self._clock())
            capacity = 0
            if len(self._entries) > self.max_entries:
                overflow = len(self._entries) - self.max_entries
                oldest = sorted(self._entries, key=lambda k: self._entries[k].stored_at)[:overflow]
                for old_key in oldest:
                    del self._entries[old_key]
                capacity = len(oldest)

        if expired:
            cache_evictions_total.labels(reason="expired").inc(expired)
        if capacity:
            cache_evictions_total.labels(reason="capacity").inc(capacity)
        logger.debug("Cache over capacity, evicted entries", expired=expired, oldest=capacity)

    def _sweep_expired(self, now: float) -> int:
        stale = [k for k, entry in self._entries.items() if self._is_expired(entry, now)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def evict_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = self._sweep_expired(self._clock())

        if removed:
            cache_evictions_total.labels(reason="expired").inc(removed)
            logger.info("Evicted expired cache entries", count=removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
