"""Placeholder summaries for when real generation cannot run."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from thread_summarizer.errors.classifier import (
    DEFAULT_RETRY_AFTER_SECONDS,
    ErrorCategory,
    ProcessedError,
)
from thread_summarizer.models import (
    FallbackSummary,
    ForumPost,
    ForumThread,
    HealthLabel,
    Sentiment,
    SummaryData,
    ThreadStats,
)

MIN_CONTENT_LENGTH = 50
FALLBACK_HEALTH_SCORE = 5

INSUFFICIENT_CONTENT_SUMMARY = "Thread has insufficient content for analysis"
INSUFFICIENT_CONTENT_KEY_POINT = "No meaningful discussion content available"


def _unavailable_message(thread_id: str | None) -> str:
    label = thread_id if thread_id else "this thread"
    return f"Unable to analyze thread {label} - forum data temporarily unavailable"


def build_fallback(error: ProcessedError, thread_id: str | None = None) -> FallbackSummary:
    """Build a non-empty placeholder summary for a classified failure.

    Error fallbacks describe a transient state and must not be cached.
    """
    summary = [_unavailable_message(thread_id)]
    key_points: list[str] = []

    if error.category is ErrorCategory.RATE_LIMIT:
        wait = error.retry_after_seconds or DEFAULT_RETRY_AFTER_SECONDS
        summary = ["Service is temporarily busy with other requests"]
        key_points = [f"Please wait {wait} seconds and try again"]
    elif error.category is ErrorCategory.AI_PROCESSING:
        summary = ["AI analysis service is temporarily unavailable"]
        key_points = ["Basic thread information is still accessible"]

    return FallbackSummary(
        summary=summary,
        key_points=key_points,
        contributors=[],
        sentiment=Sentiment.NEUTRAL,
        health_score=FALLBACK_HEALTH_SCORE,
        health_label=HealthLabel.NEEDS_ATTENTION,
        thread_stats=ThreadStats(
            post_count=0,
            contributor_count=0,
            created_at=datetime.now(timezone.utc).isoformat(),
        ),
    )


def insufficient_content_summary() -> SummaryData:
    """Stable answer for threads too short to analyze; safe to cache."""
    return SummaryData(
        summary=[INSUFFICIENT_CONTENT_SUMMARY],
        key_points=[INSUFFICIENT_CONTENT_KEY_POINT],
        contributors=[],
        sentiment=Sentiment.NEUTRAL,
        health_score=FALLBACK_HEALTH_SCORE,
        health_label=HealthLabel.NEEDS_ATTENTION,
    )


def new_thread_summary() -> SummaryData:
    """Summary for a thread that has an opening post but no replies yet."""
    return SummaryData(
        summary=["Thread has no posts yet"],
        key_points=["No discussion content available"],
        contributors=[],
        sentiment=Sentiment.NO_DISCUSSION,
        health_score=FALLBACK_HEALTH_SCORE,
        health_label=HealthLabel.NEW_THREAD,
    )


def is_suitable_for_analysis(
    thread: ForumThread,
    posts: Sequence[ForumPost],
    min_length: int = MIN_CONTENT_LENGTH,
) -> bool:
    """True if the thread body or any single post is longer than ``min_length``."""
    if len((thread.body or "").strip()) > min_length:
        return True
    return any(len((post.body or "").strip()) > min_length for post in posts)


__all__ = [
    "INSUFFICIENT_CONTENT_KEY_POINT",
    "INSUFFICIENT_CONTENT_SUMMARY",
    "MIN_CONTENT_LENGTH",
    "build_fallback",
    "insufficient_content_summary",
    "is_suitable_for_analysis",
    "new_thread_summary",
]
