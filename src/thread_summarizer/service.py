"""High-level orchestration: fetch, cache lookup, generation and fallback."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from thread_summarizer.agent_client import AgentClient
from thread_summarizer.cache import CacheManager
from thread_summarizer.clock import isoformat
from thread_summarizer.config import ServiceConfig
from thread_summarizer.errors import (
    AI_GENERATION_PHASE,
    THREAD_FETCH_PHASE,
    VALIDATION_PHASE,
    ErrorCategory,
    InputValidationError,
    ProcessedError,
    build_fallback,
    classify,
    insufficient_content_summary,
    is_suitable_for_analysis,
)
from thread_summarizer.forums_client import ForumsClient
from thread_summarizer.models import (
    FallbackSummary,
    ForumPost,
    ForumThread,
    SummaryData,
    ThreadData,
)
from thread_summarizer.monitoring import PerformanceTracker
from thread_summarizer.summarizer import ThreadSummarizer

LOGGER = logging.getLogger("thread_summarizer.service")


class ThreadDataProvider(Protocol):
    def fetch(self, thread_id: str) -> ThreadData: ...


class Summarizer(Protocol):
    def generate(self, thread: ForumThread, posts: Sequence[ForumPost]) -> SummaryData: ...


@dataclass
class SummarizeResult:
    """Outcome of one summarize request.

    ``data`` holds a real (or cached, or insufficient-content) summary on
    success; ``fallback`` holds the placeholder on failure.
    """

    thread_id: str
    success: bool
    generated_at: str
    data: Optional[SummaryData] = None
    cached: bool = False
    insufficient_content: bool = False
    error: Optional[ProcessedError] = None
    fallback: Optional[FallbackSummary] = None
    request_id: Optional[str] = None

    @property
    def summary(self) -> SummaryData:
        """Whatever should be displayed: the summary or its fallback."""
        return self.data if self.data is not None else self.fallback

    def to_dict(self) -> dict:
        payload: dict = {
            "threadId": self.thread_id,
            "success": self.success,
            "cached": self.cached,
            "generatedAt": self.generated_at,
        }
        if self.data is not None:
            payload["data"] = self.data.to_dict()
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        if self.fallback is not None:
            payload["fallback"] = self.fallback.to_dict()
        return payload


class SummaryService:
    """Serves thread summaries from cache, generating them on a miss.

    Generation is retried while the failure is retryable and the backoff fits
    in the overall ``generation_timeout`` budget. Only complete results are
    written to the cache; error fallbacks never are.
    """

    def __init__(
        self,
        provider: ThreadDataProvider,
        summarizer: Summarizer,
        cache: CacheManager,
        tracker: Optional[PerformanceTracker] = None,
        config: Optional[ServiceConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.summarizer = summarizer
        self.cache = cache
        self.tracker = tracker or PerformanceTracker()
        self.config = config or ServiceConfig()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: ServiceConfig) -> SummaryService:
        """Wire the HTTP-backed collaborators described by ``config``.

        The agent makes a single attempt per call, bounded by the whole
        generation budget; retries happen in ``summarize`` where the
        remaining budget is known.
        """
        forums = ForumsClient(base_url=config.forums_base_url, api_key=config.forums_api_key)
        agent = AgentClient(
            base_url=config.openai_base_url,
            api_key=config.openai_api_key,
            timeout=config.generation_timeout,
            max_retries=1,
        )
        summarizer = ThreadSummarizer(
            agent,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        cache = CacheManager(
            ttl_seconds=config.cache_ttl_seconds,
            max_entries=config.cache_max_entries,
        )
        return cls(forums, summarizer, cache, config=config)

    def summarize(self, thread_id: str) -> SummarizeResult:
        thread_id = (thread_id or "").strip()
        if not thread_id:
            error = classify(InputValidationError("Thread ID is required"), VALIDATION_PHASE)
            return self._failed(thread_id, error, None)

        request_id = self.tracker.start_request(thread_id)

        api_start = time.perf_counter()
        fetch_error: Optional[ProcessedError] = None
        try:
            thread_data = self.provider.fetch(thread_id)
            timestamp = thread_data.last_post_timestamp
        except Exception as exc:
            fetch_error = classify(exc, THREAD_FETCH_PHASE)
        self.tracker.record_api_request_time(
            request_id, (time.perf_counter() - api_start) * 1000
        )
        if fetch_error is not None:
            LOGGER.warning("Fetching thread %s failed: %s", thread_id, fetch_error.technical_details)
            return self._failed(thread_id, fetch_error, request_id)

        entry = self.cache.get(thread_id, timestamp)
        if entry is not None:
            self.tracker.mark_cache_hit(request_id, entry.key)
            self.tracker.complete_request(request_id)
            return SummarizeResult(
                thread_id=thread_id,
                success=True,
                generated_at=entry.generated_at_iso,
                data=entry.data,
                cached=True,
                request_id=request_id,
            )

        if not is_suitable_for_analysis(
            thread_data.thread, thread_data.posts, self.config.min_content_length
        ):
            LOGGER.info("Thread %s has insufficient content for analysis", thread_id)
            entry = self.cache.set(thread_id, timestamp, insufficient_content_summary())
            self.tracker.complete_request(request_id)
            return SummarizeResult(
                thread_id=thread_id,
                success=True,
                generated_at=entry.generated_at_iso,
                data=entry.data,
                insufficient_content=True,
                request_id=request_id,
            )

        ai_start = time.perf_counter()
        data, error = self._generate_with_retry(thread_data)
        self.tracker.record_ai_processing_time(
            request_id, (time.perf_counter() - ai_start) * 1000
        )
        if error is not None:
            return self._failed(thread_id, error, request_id)

        entry = self.cache.set(thread_id, timestamp, data)
        self.tracker.complete_request(request_id)
        LOGGER.info("Cached summary for thread %s under %s", thread_id, entry.key)
        return SummarizeResult(
            thread_id=thread_id,
            success=True,
            generated_at=entry.generated_at_iso,
            data=data,
            request_id=request_id,
        )

    def close(self) -> None:
        """Release HTTP sessions held by the collaborators."""
        for collaborator in (self.provider, self.summarizer):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> SummaryService:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _generate_with_retry(
        self, thread_data: ThreadData
    ) -> tuple[Optional[SummaryData], Optional[ProcessedError]]:
        deadline = time.monotonic() + self.config.generation_timeout
        attempt = 0

        while True:
            attempt += 1
            remaining = max(0.0, deadline - time.monotonic())
            future = self._start_generation(thread_data)
            try:
                return future.result(timeout=remaining), None
            except Exception as exc:
                error = classify(exc, AI_GENERATION_PHASE)
                if not future.done():
                    # Overall budget spent; the worker's eventual result is discarded.
                    LOGGER.warning(
                        "Summary generation for thread %s exceeded %.1fs",
                        thread_data.thread.id,
                        self.config.generation_timeout,
                    )
                    return None, error

            delay = self._backoff(attempt, error)
            remaining = deadline - time.monotonic()
            if not error.retryable or attempt >= self.config.max_attempts or delay >= remaining:
                LOGGER.warning(
                    "Summary generation for thread %s failed after %d attempt(s): %s",
                    thread_data.thread.id,
                    attempt,
                    error.technical_details,
                )
                return None, error

            LOGGER.info(
                "Retrying thread %s in %.1fs after %s",
                thread_data.thread.id,
                delay,
                error.category.value,
            )
            self._sleep(delay)

    def _start_generation(self, thread_data: ThreadData) -> Future:
        """Run one generation attempt on its own daemon thread.

        Each attempt gets a dedicated thread, so an attempt abandoned after a
        timeout never delays generation for other requests.
        """
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = self.summarizer.generate(thread_data.thread, thread_data.posts)
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        worker = threading.Thread(
            target=run, name=f"summarize-{thread_data.thread.id}", daemon=True
        )
        worker.start()
        return future

    def _backoff(self, attempt: int, error: ProcessedError) -> float:
        if error.category is ErrorCategory.RATE_LIMIT:
            return float(error.retry_delay_seconds)
        return self.config.backoff_base * 2 ** (attempt - 1)

    def _failed(
        self, thread_id: str, error: ProcessedError, request_id: Optional[str]
    ) -> SummarizeResult:
        if request_id is not None:
            self.tracker.complete_request(request_id, error.category.value)
        return SummarizeResult(
            thread_id=thread_id,
            success=False,
            generated_at=isoformat(time.time()),
            error=error,
            fallback=build_fallback(error, thread_id or None),
            request_id=request_id,
        )
