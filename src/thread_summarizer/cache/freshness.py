"""Freshness keys tying a cached summary to a thread's last activity.

A key combines the thread id with the timestamp of the newest post, so a new
reply produces a new key and the old summary simply stops being reachable.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from thread_summarizer.models import ForumPost, ForumThread

KEY_PREFIX = "summary"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_KEY_PATTERN = re.compile(r"^summary_(.+)_(\d+)$")


def build_key(thread_id: str, last_post_timestamp: str) -> str:
    """Return ``summary_<thread_id>_<last_post_timestamp>``.

    Thread ids are not escaped, so ids containing ``_`` can in principle
    collide with a different (id, timestamp) split.

    Raises:
        ValueError: If either component is missing or blank.
    """
    if not thread_id or not str(thread_id).strip():
        raise ValueError("Thread ID is required for cache key generation")
    if not last_post_timestamp or not str(last_post_timestamp).strip():
        raise ValueError("Last post timestamp is required for cache key generation")
    return f"{KEY_PREFIX}_{thread_id}_{last_post_timestamp}"


def parse_key(key: str) -> tuple[str, str] | None:
    """Split a key back into (thread_id, timestamp); None if it is not one."""
    match = _KEY_PATTERN.match(key)
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are treated as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_epoch_ms(value: str | datetime) -> int:
    """Convert a timestamp to integer milliseconds since the Unix epoch."""
    return (parse_timestamp(value) - _EPOCH) // timedelta(milliseconds=1)


def last_post_timestamp(thread: ForumThread, posts: Sequence[ForumPost]) -> str:
    """Newest post ``created_at`` as epoch-ms, or the thread's own when empty."""
    if not posts:
        return str(to_epoch_ms(thread.created_at))
    return str(max(to_epoch_ms(post.created_at) for post in posts))


__all__ = [
    "KEY_PREFIX",
    "build_key",
    "last_post_timestamp",
    "parse_key",
    "parse_timestamp",
    "to_epoch_ms",
]
