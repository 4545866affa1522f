"""Tests for PerformanceTracker."""

import logging
import threading

import pytest

from thread_summarizer.monitoring import PerformanceTracker

from tests.factories import FakeClock


class FakeTimer:
    """perf_counter stand-in advanced by hand (seconds)."""

    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def tracker(timer):
    return PerformanceTracker(timer=timer)


class TestRequestLifecycle:
    """start / mark / complete flow."""

    def test_request_ids_are_unique(self, tracker):
        first = tracker.start_request("t1")
        second = tracker.start_request("t1")

        assert first != second
        assert first.startswith("req_1_")
        assert second.startswith("req_2_")

    def test_duration(self, tracker, timer):
        request_id = tracker.start_request("t1")
        timer.value = 0.25

        record = tracker.complete_request(request_id)

        assert record.duration_ms == pytest.approx(250.0)
        assert record.completed

    def test_cache_hit_and_timings(self, tracker):
        request_id = tracker.start_request("t1")
        tracker.mark_cache_hit(request_id, "summary_t1_1")
        tracker.record_api_request_time(request_id, 12.7)
        tracker.record_ai_processing_time(request_id, 900.2)

        record = tracker.get(request_id)

        assert record.cache_hit
        assert record.cache_key == "summary_t1_1"
        assert record.api_request_ms == 12
        assert record.ai_processing_ms == 900

    def test_error_is_recorded(self, tracker):
        request_id = tracker.start_request("t1")
        record = tracker.complete_request(request_id, error="NOT_FOUND")
        assert record.error == "NOT_FOUND"

    def test_unknown_request_id_is_ignored(self, tracker):
        tracker.mark_cache_hit("req_missing")
        tracker.record_ai_processing_time("req_missing", 5)
        assert tracker.complete_request("req_missing") is None

    def test_history_is_bounded(self, timer):
        tracker = PerformanceTracker(max_history=3, timer=timer)
        ids = [tracker.start_request(f"t{i}") for i in range(5)]

        assert tracker.get(ids[0]) is None
        assert tracker.get(ids[-1]) is not None


class TestSlowRequestLogging:
    """Warnings for requests over their latency budget."""

    def test_slow_uncached_warns(self, tracker, timer, caplog):
        request_id = tracker.start_request("t1")
        timer.value = 3.5

        with caplog.at_level(logging.WARNING, logger="thread_summarizer.monitoring.performance"):
            tracker.complete_request(request_id)

        assert "Slow uncached request" in caplog.text

    def test_slow_cached_warns(self, tracker, timer, caplog):
        request_id = tracker.start_request("t1")
        tracker.mark_cache_hit(request_id, "summary_t1_1")
        timer.value = 0.2

        with caplog.at_level(logging.WARNING, logger="thread_summarizer.monitoring.performance"):
            tracker.complete_request(request_id)

        assert "Slow cached request" in caplog.text

    def test_fast_request_does_not_warn(self, tracker, timer, caplog):
        request_id = tracker.start_request("t1")
        timer.value = 0.05

        with caplog.at_level(logging.WARNING, logger="thread_summarizer.monitoring.performance"):
            tracker.complete_request(request_id)

        assert "Slow" not in caplog.text


class TestStats:
    """Aggregation across completed requests."""

    def _complete(self, tracker, timer, seconds, cache_hit=False, error=None):
        timer.value = 0.0
        request_id = tracker.start_request("t")
        if cache_hit:
            tracker.mark_cache_hit(request_id)
        timer.value = seconds
        tracker.complete_request(request_id, error=error)

    def test_empty(self, tracker):
        stats = tracker.stats()
        assert stats.total_requests == 0
        assert stats.average_response_ms == 0.0

    def test_aggregates(self, tracker, timer):
        self._complete(tracker, timer, 0.010, cache_hit=True)
        self._complete(tracker, timer, 0.030, cache_hit=True)
        self._complete(tracker, timer, 1.000)
        self._complete(tracker, timer, 2.000, error="TIMEOUT")

        stats = tracker.stats()

        assert stats.total_requests == 4
        assert stats.cached_requests == 2
        assert stats.uncached_requests == 2
        assert stats.average_cached_ms == pytest.approx(20.0)
        assert stats.average_uncached_ms == pytest.approx(1500.0)
        assert stats.cache_hit_rate == 0.5
        assert stats.error_rate == 0.25
        assert stats.p95_response_ms == pytest.approx(2000.0)
        assert "Requests: 4" in stats.summary()

    def test_incomplete_requests_are_excluded(self, tracker, timer):
        tracker.start_request("t1")
        self._complete(tracker, timer, 0.5)

        assert tracker.stats().total_requests == 1

    def test_slow_requests_sorted(self, tracker, timer):
        self._complete(tracker, timer, 4.0)
        self._complete(tracker, timer, 0.1)
        self._complete(tracker, timer, 6.0)

        slow = tracker.slow_requests()

        assert [r.duration_ms for r in slow] == [pytest.approx(6000.0), pytest.approx(4000.0)]

    def test_clear(self, tracker, timer):
        self._complete(tracker, timer, 0.5)
        tracker.clear()
        assert tracker.stats().total_requests == 0


class TestTimestamps:
    """Wall-clock stamps versus monotonic durations."""

    def test_started_and_completed_use_wall_clock(self, timer):
        clock = FakeClock(start=1_704_110_400.0)
        tracker = PerformanceTracker(timer=timer, clock=clock)
        timer.value = 500.0

        request_id = tracker.start_request("t1")
        clock.advance(2)
        timer.value = 500.75
        record = tracker.complete_request(request_id)

        assert record.started_at == 1_704_110_400.0
        assert record.completed_at == 1_704_110_402.0
        assert record.started_at_iso == "2024-01-01T12:00:00+00:00"
        assert record.duration_ms == pytest.approx(750.0)
        assert request_id.endswith("_1704110400000")


class TestThreadSafety:
    """Records are only changed under the tracker lock."""

    def test_returned_records_are_copies(self, tracker):
        request_id = tracker.start_request("t1")
        snapshot = tracker.get(request_id)

        tracker.mark_cache_hit(request_id, "summary_t1_1")

        assert snapshot.cache_hit is False
        assert tracker.get(request_id).cache_hit is True

    def test_concurrent_updates_and_stats(self):
        tracker = PerformanceTracker()
        request_ids = [tracker.start_request(f"t{i}") for i in range(200)]
        errors = []

        def update() -> None:
            try:
                for request_id in request_ids:
                    tracker.mark_cache_hit(request_id)
                    tracker.record_ai_processing_time(request_id, 10)
                    tracker.complete_request(request_id)
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        def read() -> None:
            try:
                for _ in range(200):
                    tracker.stats()
                    tracker.slow_requests(threshold_ms=0)
            except Exception as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=update), threading.Thread(target=read)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        stats = tracker.stats()
        assert stats.total_requests == 200
        assert stats.cache_hit_rate == 1.0
