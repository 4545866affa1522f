"""Map arbitrary failures onto a fixed, user-presentable error taxonomy."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from thread_summarizer.errors.failures import (
    Failure,
    HttpFailure,
    NativeFailure,
    normalize_failure,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60
MAX_DETAIL_LENGTH = 200

AI_GENERATION_PHASE = "ai_generation"
THREAD_FETCH_PHASE = "thread_fetch"
VALIDATION_PHASE = "validation"

_AI_PHASE_TOKENS = {"ai", "openai", "analysis", "summarization"}
_SECONDS_PATTERN = re.compile(r"(\d+)\s*seconds?", re.IGNORECASE)
_URL_PATTERN = re.compile(r"https?://\S+")


class ErrorCategory(str, Enum):
    AUTHENTICATION = "AUTHENTICATION"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    AI_PROCESSING = "AI_PROCESSING"
    VALIDATION = "VALIDATION"
    UNKNOWN = "UNKNOWN"


RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.NETWORK,
        ErrorCategory.TIMEOUT,
        ErrorCategory.AI_PROCESSING,
        ErrorCategory.UNKNOWN,
    }
)

# Seconds to wait before retrying, per category.
RETRY_DELAYS = {
    ErrorCategory.NETWORK: 5,
    ErrorCategory.TIMEOUT: 10,
    ErrorCategory.AI_PROCESSING: 15,
    ErrorCategory.UNKNOWN: 5,
}


@dataclass(frozen=True)
class ProcessedError:
    """A classified failure, safe to show to users."""

    category: ErrorCategory
    title: str
    message: str
    suggestions: tuple[str, ...] = field(default_factory=tuple)
    retry_after_seconds: int | None = None
    technical_details: str | None = None

    @property
    def retryable(self) -> bool:
        return self.category in RETRYABLE_CATEGORIES

    @property
    def retry_delay_seconds(self) -> int:
        """Suggested wait before retrying; 0 for non-retryable errors."""
        if not self.retryable:
            return 0
        if self.category is ErrorCategory.RATE_LIMIT:
            return self.retry_after_seconds or DEFAULT_RETRY_AFTER_SECONDS
        return RETRY_DELAYS.get(self.category, 5)

    def to_dict(self) -> dict:
        data = {
            "category": self.category.value,
            "title": self.title,
            "message": self.message,
            "retryable": self.retryable,
            "suggestions": list(self.suggestions),
        }
        if self.retry_after_seconds is not None:
            data["retryAfter"] = self.retry_after_seconds
        return data


def _is_ai_phase(phase: str) -> bool:
    tokens = set(re.split(r"[^a-z0-9]+", phase.lower()))
    return bool(tokens & _AI_PHASE_TOKENS)


def _is_validation_phase(phase: str) -> bool:
    return "validation" in phase.lower()


def _sanitize(text: str) -> str:
    """Collapse whitespace, hide URLs and bound the length of log details."""
    cleaned = _URL_PATTERN.sub("<url>", " ".join(text.split()))
    if len(cleaned) > MAX_DETAIL_LENGTH:
        cleaned = cleaned[: MAX_DETAIL_LENGTH - 3] + "..."
    return cleaned


def _retry_after(failure: Failure, message: str) -> int:
    if isinstance(failure, HttpFailure) and failure.retry_after:
        return failure.retry_after
    match = _SECONDS_PATTERN.search(message)
    if match:
        return int(match.group(1))
    return DEFAULT_RETRY_AFTER_SECONDS


def _authentication(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.AUTHENTICATION,
        title="Authentication Required",
        message=(
            "Unable to access the forum data. The service may need to be "
            "configured with proper credentials."
        ),
        suggestions=(
            "Contact the administrator to configure API access",
            "Check if the forum service is available",
        ),
        technical_details=details,
    )


def _not_found(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.NOT_FOUND,
        title="Thread Not Found",
        message=(
            "The requested thread could not be found. Please check the thread "
            "ID and try again."
        ),
        suggestions=(
            "Double-check the thread ID",
            "Make sure the thread has not been deleted",
        ),
        technical_details=details,
    )


def _rate_limit(retry_after: int, details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.RATE_LIMIT,
        title="Service Temporarily Busy",
        message=(
            "The service is currently handling many requests. Please wait "
            f"{retry_after} seconds and try again."
        ),
        suggestions=(
            f"Wait {retry_after} seconds before trying again",
            "Try again during off-peak hours",
        ),
        retry_after_seconds=retry_after,
        technical_details=details,
    )


def _network(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.NETWORK,
        title="Connection Problem",
        message=(
            "Unable to connect to the forum service. Please check your "
            "internet connection."
        ),
        suggestions=(
            "Check your internet connection",
            "Wait a moment and try again",
        ),
        technical_details=details,
    )


def _timeout(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.TIMEOUT,
        title="Request Timed Out",
        message=(
            "The request took too long to complete. This might be due to a "
            "large thread or temporary service issues."
        ),
        suggestions=(
            "Wait a moment and retry",
            "Check if the thread ID is correct",
        ),
        technical_details=details,
    )


def _ai_processing(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.AI_PROCESSING,
        title="Analysis Failed",
        message=(
            "The AI analysis service encountered an error. A basic summary is "
            "available instead."
        ),
        suggestions=(
            "Try again in a few moments",
            "The basic thread statistics are still available",
        ),
        technical_details=details,
    )


def _validation(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.VALIDATION,
        title="Invalid Input",
        message=(
            "The provided input is not valid. Please check your request and "
            "try again."
        ),
        suggestions=(
            "Check that the thread ID is correct",
            "Make sure all required fields are provided",
        ),
        technical_details=details,
    )


def _unknown(details: str | None) -> ProcessedError:
    return ProcessedError(
        category=ErrorCategory.UNKNOWN,
        title="Unexpected Error",
        message=(
            "An unexpected error occurred. Please try again or contact support "
            "if the problem persists."
        ),
        suggestions=(
            "Wait a moment and try again",
            "Contact support if the problem continues",
        ),
        technical_details=details,
    )


def classify(raw: object, phase: str = "") -> ProcessedError:
    """Classify a raised value from ``phase`` into a ``ProcessedError``.

    Rules are checked in order and the first match wins: authentication,
    not found, rate limit, network, timeout, AI-generation phase, validation,
    and finally unknown. Never raises.
    """
    try:
        return _classify(normalize_failure(raw), phase or "")
    except Exception:
        LOGGER.exception("Error classification failed for phase %r", phase)
        return _unknown(None)


def _classify(failure: Failure, phase: str) -> ProcessedError:
    status: int | None = None
    message = ""
    if isinstance(failure, HttpFailure):
        status = failure.status
        message = failure.message
    elif isinstance(failure, NativeFailure):
        message = failure.message
    text = message.lower()

    details = f"[{phase}] {_sanitize(message)}" if message else None
    if details and status is not None:
        details = f"{details} (status {status})"

    if status == 401 or "authentication" in text or "invalid api key" in text:
        return _authentication(details)
    if status == 404 or "not found" in text:
        return _not_found(details)
    if status == 429 or "rate limit" in text:
        return _rate_limit(_retry_after(failure, message), details)
    if "network error" in text or "unable to connect" in text:
        return _network(details)
    if "timeout" in text or "did not respond in time" in text:
        return _timeout(details)
    if _is_ai_phase(phase):
        return _ai_processing(details)
    if status in (400, 422) or _is_validation_phase(phase):
        return _validation(details)
    return _unknown(details)


__all__ = [
    "AI_GENERATION_PHASE",
    "DEFAULT_RETRY_AFTER_SECONDS",
    "ErrorCategory",
    "ProcessedError",
    "RETRYABLE_CATEGORIES",
    "THREAD_FETCH_PHASE",
    "VALIDATION_PHASE",
    "classify",
]
