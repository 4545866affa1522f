"""Tests for SummaryService orchestration."""

import threading
from unittest.mock import Mock

import pytest

from thread_summarizer.cache import CacheManager
from thread_summarizer.config import ServiceConfig
from thread_summarizer.errors import (
    AgentClientError,
    ErrorCategory,
    ForumsApiError,
    SummaryGenerationError,
)
from thread_summarizer.models import FallbackSummary, ThreadData
from thread_summarizer.monitoring import PerformanceTracker
from thread_summarizer.service import SummaryService

from tests.factories import make_post, make_thread

LONG_BODY = "This reply is long enough to be worth summarizing for the reader."


def _thread_data(thread_id="t1", post_times=("2024-01-01T10:00:00Z", "2024-01-01T12:00:00Z")):
    posts = [
        make_post(f"p{i}", body=LONG_BODY, created_at=ts, username=f"user{i}", thread_id=thread_id)
        for i, ts in enumerate(post_times)
    ]
    return ThreadData(thread=make_thread(thread_id), posts=posts)


@pytest.fixture
def provider():
    provider = Mock()
    provider.fetch.return_value = _thread_data()
    return provider


@pytest.fixture
def summarizer(summary_data):
    summarizer = Mock()
    summarizer.generate.return_value = summary_data
    return summarizer


@pytest.fixture
def cache(clock):
    return CacheManager(clock=clock)


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def service(provider, summarizer, cache, sleep):
    svc = SummaryService(
        provider,
        summarizer,
        cache,
        tracker=PerformanceTracker(),
        config=ServiceConfig(generation_timeout=5.0),
        sleep=sleep,
    )
    yield svc
    svc.close()


class TestCacheFlow:
    """Hits, misses and freshness."""

    def test_miss_generates_and_caches(self, service, summarizer, cache, summary_data):
        result = service.summarize("t1")

        assert result.success
        assert not result.cached
        assert result.data == summary_data
        summarizer.generate.assert_called_once()
        assert cache.keys() == ["summary_t1_1704110400000"]

    def test_hit_skips_generation(self, service, summarizer, summary_data):
        service.summarize("t1")
        result = service.summarize("t1")

        assert result.success
        assert result.cached
        assert result.data == summary_data
        summarizer.generate.assert_called_once()
        assert service.tracker.get(result.request_id).cache_hit

    def test_new_post_invalidates(self, service, provider, summarizer, cache):
        service.summarize("t1")
        provider.fetch.return_value = _thread_data(
            post_times=("2024-01-01T10:00:00Z", "2024-01-01T12:00:00Z", "2024-01-01T13:00:00Z")
        )

        result = service.summarize("t1")

        assert not result.cached
        assert summarizer.generate.call_count == 2
        assert "summary_t1_1704114000000" in cache.keys()

    def test_generated_at_is_iso(self, service, clock):
        result = service.summarize("t1")
        assert result.generated_at.startswith("2023-11-14T")

    def test_expired_entry_regenerates(self, service, summarizer, clock):
        service.summarize("t1")
        clock.advance(24 * 60 * 60)

        result = service.summarize("t1")

        assert not result.cached
        assert summarizer.generate.call_count == 2


class TestInsufficientContent:
    def test_short_thread_is_not_sent_to_model(self, service, provider, summarizer, cache):
        provider.fetch.return_value = ThreadData(
            thread=make_thread(body="Hi"), posts=[make_post(body="ok")]
        )

        result = service.summarize("t1")

        assert result.success
        assert result.insufficient_content
        assert result.data.summary == ["Thread has insufficient content for analysis"]
        summarizer.generate.assert_not_called()
        assert len(cache) == 1


class TestFailures:
    """Fallbacks for fetch and generation errors."""

    def test_blank_thread_id(self, service, provider):
        result = service.summarize("   ")

        assert not result.success
        assert result.error.category is ErrorCategory.VALIDATION
        assert isinstance(result.fallback, FallbackSummary)
        provider.fetch.assert_not_called()

    def test_fetch_not_found(self, service, provider, cache):
        provider.fetch.side_effect = ForumsApiError("Thread with ID t9 not found", 404)

        result = service.summarize("t9")

        assert not result.success
        assert result.error.category is ErrorCategory.NOT_FOUND
        assert "t9" in result.fallback.summary[0]
        assert result.summary is result.fallback
        assert len(cache) == 0

    def test_failed_request_is_tracked_as_error(self, service, provider):
        provider.fetch.side_effect = ForumsApiError("nope", 401)

        result = service.summarize("t1")

        record = service.tracker.get(result.request_id)
        assert record.error == "AUTHENTICATION"
        assert record.api_request_ms is not None

    def test_non_retryable_generation_error(self, service, summarizer, sleep, cache):
        summarizer.generate.side_effect = AgentClientError("Authentication failed", 401)

        result = service.summarize("t1")

        assert result.error.category is ErrorCategory.AUTHENTICATION
        summarizer.generate.assert_called_once()
        sleep.assert_not_called()
        assert len(cache) == 0

    def test_retry_then_success(self, service, summarizer, sleep, summary_data):
        summarizer.generate.side_effect = [
            SummaryGenerationError("bad output"),
            AgentClientError("AI service error (status 503)", 503),
            summary_data,
        ]

        result = service.summarize("t1")

        assert result.success
        assert summarizer.generate.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_attempts_are_bounded(self, service, summarizer, sleep, cache):
        summarizer.generate.side_effect = SummaryGenerationError("bad output")

        result = service.summarize("t1")

        assert not result.success
        assert result.error.category is ErrorCategory.AI_PROCESSING
        assert summarizer.generate.call_count == 3
        assert result.fallback.summary == ["AI analysis service is temporarily unavailable"]
        assert len(cache) == 0

    def test_rate_limit_wait_longer_than_budget_stops(self, service, summarizer, sleep):
        summarizer.generate.side_effect = AgentClientError("slow down", 429, retry_after=60)

        result = service.summarize("t1")

        assert result.error.category is ErrorCategory.RATE_LIMIT
        summarizer.generate.assert_called_once()
        sleep.assert_not_called()

    def test_overall_timeout(self, provider, cache, sleep, summary_data):
        release = threading.Event()

        def slow_generate(thread, posts):
            release.wait(5)
            return summary_data

        summarizer = Mock()
        summarizer.generate.side_effect = slow_generate
        service = SummaryService(
            provider,
            summarizer,
            cache,
            config=ServiceConfig(generation_timeout=0.2),
            sleep=sleep,
        )
        try:
            result = service.summarize("t1")
        finally:
            release.set()
            service.close()

        assert not result.success
        assert result.error.category is ErrorCategory.TIMEOUT
        summarizer.generate.assert_called_once()
        assert len(cache) == 0


class TestAbandonedGenerations:
    """Timed-out attempts must not hold up other requests."""

    def test_hung_generations_do_not_block_new_requests(self, cache, sleep, summary_data):
        release = threading.Event()
        generated = []

        def generate(thread, posts):
            if thread.id.startswith("slow"):
                release.wait(10)
            generated.append(thread.id)
            return summary_data

        provider = Mock()
        provider.fetch.side_effect = lambda thread_id: _thread_data(thread_id)
        summarizer = Mock()
        summarizer.generate.side_effect = generate
        service = SummaryService(
            provider,
            summarizer,
            cache,
            config=ServiceConfig(generation_timeout=0.3),
            sleep=sleep,
        )
        try:
            slow_results = [service.summarize(f"slow{i}") for i in range(5)]
            fast = service.summarize("fast")
        finally:
            release.set()
            service.close()

        assert all(r.error.category is ErrorCategory.TIMEOUT for r in slow_results)
        assert fast.success
        assert "fast" in generated
        assert cache.has("fast", "1704110400000")


class TestResultSerialization:
    def test_success_to_dict(self, service):
        data = service.summarize("t1").to_dict()

        assert data["threadId"] == "t1"
        assert data["success"] is True
        assert data["data"]["healthLabel"] == "Healthy"
        assert "fallback" not in data

    def test_failure_to_dict(self, service, provider):
        provider.fetch.side_effect = ForumsApiError("Thread not found", 404)

        data = service.summarize("t1").to_dict()

        assert data["success"] is False
        assert data["error"]["category"] == "NOT_FOUND"
        assert "threadStats" in data["fallback"]


class TestFromConfig:
    def test_wires_collaborators(self):
        config = ServiceConfig(
            forums_api_key="f", openai_api_key="o", cache_max_entries=7, model="m"
        )

        with SummaryService.from_config(config) as service:
            assert service.cache.max_entries == 7
            assert service.summarizer.model == "m"
            assert service.provider.api_key == "f"

    def test_agent_call_fits_generation_budget(self):
        config = ServiceConfig(generation_timeout=12.0)

        with SummaryService.from_config(config) as service:
            agent = service.summarizer.agent
            assert agent.max_retries == 1
            assert agent.timeout * agent.max_retries <= config.generation_timeout

    def test_close_releases_sessions(self):
        provider = Mock()
        summarizer = Mock()

        SummaryService(provider, summarizer, CacheManager()).close()

        provider.close.assert_called_once()
        summarizer.close.assert_called_once()
