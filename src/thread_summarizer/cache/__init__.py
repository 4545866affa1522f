"""Summary cache keyed by thread freshness."""

from thread_summarizer.cache.freshness import (
    build_key,
    last_post_timestamp,
    parse_key,
    to_epoch_ms,
)
from thread_summarizer.cache.manager import (
    CacheEntry,
    CacheManager,
    CacheSize,
    CacheStats,
)

__all__ = [
    "CacheEntry",
    "CacheManager",
    "CacheSize",
    "CacheStats",
    "build_key",
    "last_post_timestamp",
    "parse_key",
    "to_epoch_ms",
]
