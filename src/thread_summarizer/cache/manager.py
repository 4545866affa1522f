"""Bounded in-memory TTL cache for thread summaries."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from thread_summarizer.cache.freshness import build_key
from thread_summarizer.clock import Clock, SystemClock, isoformat

if TYPE_CHECKING:
    from thread_summarizer.models import SummaryData

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_MAX_ENTRIES = 1000


@dataclass(frozen=True)
class CacheEntry:
    """A summary stored under its freshness key."""

    key: str
    thread_id: str
    last_post_timestamp: str
    data: SummaryData
    generated_at: float
    expires_at: float

    @property
    def generated_at_iso(self) -> str:
        return isoformat(self.generated_at)

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    total_requests: int

    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests


@dataclass(frozen=True)
class CacheSize:
    entries: int
    max_entries: int

    @property
    def utilization_percent(self) -> float:
        if self.max_entries == 0:
            return 0.0
        return (self.entries / self.max_entries) * 100


class CacheManager:
    """Maps freshness keys to summaries with lazy TTL expiry.

    Entries are never updated in place. A newer post changes the key, so the
    previous entry is left to expire or to be evicted. When the cache is full,
    the oldest-created entries are dropped before the new one is stored.

    All map access goes through one lock. Concurrent misses on the same key
    may both generate and both ``set``; the last writer wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Clock | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.clock = clock or SystemClock()
        # Insertion order doubles as creation order: set() re-inserts on overwrite.
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, thread_id: str, last_post_timestamp: str) -> CacheEntry | None:
        """Return the live entry for this freshness key, or None."""
        key = build_key(thread_id, last_post_timestamp)
        now = self.clock.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
                LOGGER.debug("Cache miss for %s", key)
                return None
            self._hits += 1
            LOGGER.debug("Cache hit for %s", key)
            return entry

    def set(
        self, thread_id: str, last_post_timestamp: str, data: SummaryData
    ) -> CacheEntry:
        """Store ``data`` under the freshness key, replacing any previous value."""
        key = build_key(thread_id, last_post_timestamp)
        now = self.clock.now()
        entry = CacheEntry(
            key=key,
            thread_id=thread_id,
            last_post_timestamp=last_post_timestamp,
            data=data,
            generated_at=now,
            expires_at=now + self.ttl_seconds,
        )
        with self._lock:
            self._entries.pop(key, None)
            self._purge_expired_locked(now)
            self._evict_locked()
            self._entries[key] = entry
        return entry

    def has(self, thread_id: str, last_post_timestamp: str) -> bool:
        return self.get(thread_id, last_post_timestamp) is not None

    def invalidate_thread(self, thread_id: str) -> int:
        """Drop every entry for a thread regardless of timestamp."""
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.thread_id == thread_id]
            for key in stale:
                del self._entries[key]
        if stale:
            LOGGER.info("Invalidated %d cached summaries for thread %s", len(stale), thread_id)
        return len(stale)

    def purge_expired(self) -> int:
        """Remove expired entries; returns how many were dropped."""
        now = self.clock.now()
        with self._lock:
            removed = self._purge_expired_locked(now)
        if removed:
            LOGGER.info("Cache cleanup: removed %d expired entries", removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                total_requests=self._hits + self._misses,
            )

    def size(self) -> CacheSize:
        return CacheSize(entries=len(self), max_entries=self.max_entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _purge_expired_locked(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_locked(self) -> None:
        overflow = len(self._entries) - self.max_entries + 1
        if overflow <= 0:
            return
        oldest = list(self._entries)[:overflow]
        for key in oldest:
            del self._entries[key]
        LOGGER.debug("Evicted %d oldest cache entries", overflow)


__all__ = [
    "CacheEntry",
    "CacheManager",
    "CacheSize",
    "CacheStats",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_TTL_SECONDS",
]
