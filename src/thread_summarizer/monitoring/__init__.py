"""Request performance tracking."""

from thread_summarizer.monitoring.performance import (
    PerformanceRecord,
    PerformanceStats,
    PerformanceTracker,
)

__all__ = [
    "PerformanceRecord",
    "PerformanceStats",
    "PerformanceTracker",
]
