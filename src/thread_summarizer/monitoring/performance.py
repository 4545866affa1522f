"""Per-request timing for observability."""

from __future__ import annotations

import dataclasses
import itertools
import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable

from thread_summarizer.clock import Clock, SystemClock, isoformat

LOGGER = logging.getLogger(__name__)

MAX_HISTORY = 1000
SLOW_CACHED_MS = 100.0
SLOW_UNCACHED_MS = 3000.0


@dataclass
class PerformanceRecord:
    """Timing for a single summarize request.

    ``started_at`` and ``completed_at`` are wall-clock epoch seconds;
    ``duration_ms`` is measured with a monotonic timer.
    """

    request_id: str
    thread_id: str
    started_at: float
    cache_hit: bool = False
    cache_key: str | None = None
    ai_processing_ms: int | None = None
    api_request_ms: int | None = None
    completed_at: float | None = None
    duration_ms: float | None = None
    error: str | None = None
    timer_start: float = field(default=0.0, repr=False)

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    @property
    def started_at_iso(self) -> str:
        return isoformat(self.started_at)


@dataclass
class PerformanceStats:
    """Aggregate figures across completed requests."""

    total_requests: int = 0
    cached_requests: int = 0
    uncached_requests: int = 0
    average_response_ms: float = 0.0
    average_cached_ms: float = 0.0
    average_uncached_ms: float = 0.0
    cache_hit_rate: float = 0.0
    error_rate: float = 0.0
    p95_response_ms: float = 0.0
    p99_response_ms: float = 0.0

    def summary(self) -> str:
        """Human-readable summary of request performance."""
        return (
            f"Requests: {self.total_requests} "
            f"(cached={self.cached_requests} uncached={self.uncached_requests}) | "
            f"Hit rate: {self.cache_hit_rate * 100:.1f}% | "
            f"Avg: {self.average_response_ms:.1f}ms | "
            f"p95: {self.p95_response_ms:.1f}ms | "
            f"Errors: {self.error_rate * 100:.1f}%"
        )


def _average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _percentile(sorted_values: list[float], fraction: float) -> float:
    if not sorted_values:
        return 0.0
    index = math.ceil(len(sorted_values) * fraction) - 1
    return sorted_values[max(0, index)]


class PerformanceTracker:
    """Records start, cache outcome, AI latency and completion per request.

    Tracking is passive: unknown request ids are ignored, and nothing here
    raises into the request path. Records are only read or changed while
    holding the tracker lock; callers get copies.
    """

    def __init__(
        self,
        max_history: int = MAX_HISTORY,
        timer: Callable[[], float] = time.perf_counter,
        clock: Clock | None = None,
    ) -> None:
        self.max_history = max_history
        self._timer = timer
        self._clock = clock or SystemClock()
        self._records: OrderedDict[str, PerformanceRecord] = OrderedDict()
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def start_request(self, thread_id: str) -> str:
        """Begin tracking; returns the request id to pass to later calls."""
        started_at = self._clock.now()
        with self._lock:
            request_id = f"req_{next(self._counter)}_{int(started_at * 1000)}"
            self._records[request_id] = PerformanceRecord(
                request_id=request_id,
                thread_id=thread_id,
                started_at=started_at,
                timer_start=self._timer(),
            )
            while len(self._records) > self.max_history:
                self._records.popitem(last=False)
        return request_id

    def mark_cache_hit(self, request_id: str, cache_key: str | None = None) -> None:
        self._update(request_id, cache_hit=True, cache_key=cache_key)

    def record_ai_processing_time(self, request_id: str, ms: float) -> None:
        self._update(request_id, ai_processing_ms=int(ms))

    def record_api_request_time(self, request_id: str, ms: float) -> None:
        self._update(request_id, api_request_ms=int(ms))

    def complete_request(
        self, request_id: str, error: str | None = None
    ) -> PerformanceRecord | None:
        """Stamp completion time and log the outcome."""
        completed_at = self._clock.now()
        now = self._timer()
        with self._lock:
            record = self._records.get(request_id)
            if record is not None:
                record.completed_at = completed_at
                record.duration_ms = (now - record.timer_start) * 1000
                if error:
                    record.error = error
                record = dataclasses.replace(record)
        if record is None:
            LOGGER.debug("Ignoring unknown request id %s", request_id)
            return None
        self._log(record)
        return record

    def get(self, request_id: str) -> PerformanceRecord | None:
        with self._lock:
            record = self._records.get(request_id)
            return dataclasses.replace(record) if record is not None else None

    def stats(self) -> PerformanceStats:
        with self._lock:
            completed = [
                (r.duration_ms, r.cache_hit, bool(r.error))
                for r in self._records.values()
                if r.completed
            ]
        if not completed:
            return PerformanceStats()

        durations = sorted(duration for duration, _, _ in completed)
        cached = [duration for duration, hit, _ in completed if hit]
        uncached = [duration for duration, hit, _ in completed if not hit]
        errors = sum(1 for _, _, failed in completed if failed)

        return PerformanceStats(
            total_requests=len(completed),
            cached_requests=len(cached),
            uncached_requests=len(uncached),
            average_response_ms=_average(durations),
            average_cached_ms=_average(cached),
            average_uncached_ms=_average(uncached),
            cache_hit_rate=len(cached) / len(completed),
            error_rate=errors / len(completed),
            p95_response_ms=_percentile(durations, 0.95),
            p99_response_ms=_percentile(durations, 0.99),
        )

    def slow_requests(
        self, threshold_ms: float = SLOW_UNCACHED_MS, limit: int = 10
    ) -> list[PerformanceRecord]:
        """Slowest completed requests above ``threshold_ms``, slowest first."""
        with self._lock:
            slow = [
                dataclasses.replace(r)
                for r in self._records.values()
                if r.completed and r.duration_ms > threshold_ms
            ]
        slow.sort(key=lambda r: r.duration_ms, reverse=True)
        return slow[:limit]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._counter = itertools.count(1)

    def _update(self, request_id: str, **changes) -> None:
        with self._lock:
            record = self._records.get(request_id)
            if record is not None:
                for name, value in changes.items():
                    setattr(record, name, value)
        if record is None:
            LOGGER.debug("Ignoring unknown request id %s", request_id)

    def _log(self, record: PerformanceRecord) -> None:
        duration = record.duration_ms or 0.0
        status = "HIT" if record.cache_hit else "MISS"

        if not record.cache_hit and duration > SLOW_UNCACHED_MS:
            LOGGER.warning(
                "Slow uncached request: %s took %.2fms (thread: %s)",
                record.request_id,
                duration,
                record.thread_id,
            )
        if record.cache_hit and duration > SLOW_CACHED_MS:
            LOGGER.warning(
                "Slow cached request: %s took %.2fms (cache key: %s)",
                record.request_id,
                duration,
                record.cache_key,
            )

        LOGGER.info(
            "Request %s: %.2fms [%s] (thread: %s)",
            record.request_id,
            duration,
            status,
            record.thread_id,
        )
        if record.error:
            LOGGER.error("Request %s failed: %s", record.request_id, record.error)


__all__ = ["PerformanceRecord", "PerformanceStats", "PerformanceTracker"]
