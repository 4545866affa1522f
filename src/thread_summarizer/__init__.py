"""Cached, failure-tolerant AI summaries for Foru.ms threads."""

from thread_summarizer.cache import CacheEntry, CacheManager, build_key
from thread_summarizer.config import ServiceConfig, load_config
from thread_summarizer.errors import (
    ErrorCategory,
    ProcessedError,
    build_fallback,
    classify,
    is_suitable_for_analysis,
)
from thread_summarizer.models import SummaryData, ThreadData
from thread_summarizer.monitoring import PerformanceTracker
from thread_summarizer.service import SummarizeResult, SummaryService

__all__ = [
    "CacheEntry",
    "CacheManager",
    "ErrorCategory",
    "PerformanceTracker",
    "ProcessedError",
    "ServiceConfig",
    "SummarizeResult",
    "SummaryData",
    "SummaryService",
    "ThreadData",
    "build_fallback",
    "build_key",
    "classify",
    "is_suitable_for_analysis",
    "load_config",
]
