"""Error taxonomy, classification and fallback summaries."""

from thread_summarizer.errors.classifier import (
    AI_GENERATION_PHASE,
    THREAD_FETCH_PHASE,
    VALIDATION_PHASE,
    ErrorCategory,
    ProcessedError,
    classify,
)
from thread_summarizer.errors.exceptions import (
    AgentClientError,
    ConfigError,
    ForumsApiError,
    InputValidationError,
    SummarizerError,
    SummaryGenerationError,
    UpstreamError,
)
from thread_summarizer.errors.failures import (
    Failure,
    HttpFailure,
    NativeFailure,
    UnknownFailure,
    normalize_failure,
)
from thread_summarizer.errors.fallback import (
    build_fallback,
    insufficient_content_summary,
    is_suitable_for_analysis,
    new_thread_summary,
)

__all__ = [
    # Classification
    "AI_GENERATION_PHASE",
    "THREAD_FETCH_PHASE",
    "VALIDATION_PHASE",
    "ErrorCategory",
    "ProcessedError",
    "classify",
    # Exceptions
    "AgentClientError",
    "ConfigError",
    "ForumsApiError",
    "InputValidationError",
    "SummarizerError",
    "SummaryGenerationError",
    "UpstreamError",
    # Failure variants
    "Failure",
    "HttpFailure",
    "NativeFailure",
    "UnknownFailure",
    "normalize_failure",
    # Fallbacks
    "build_fallback",
    "insufficient_content_summary",
    "is_suitable_for_analysis",
    "new_thread_summary",
]
