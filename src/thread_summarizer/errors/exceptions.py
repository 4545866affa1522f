"""Exceptions raised by collaborators around the summary pipeline."""

from __future__ import annotations


class SummarizerError(Exception):
    """Base exception for thread-summarizer operations."""


class UpstreamError(SummarizerError):
    """An HTTP collaborator rejected or failed a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message)


class ForumsApiError(UpstreamError):
    """The Foru.ms API request failed."""


class AgentClientError(UpstreamError):
    """The chat-completions endpoint rejected or failed a request."""


class SummaryGenerationError(SummarizerError):
    """The model answered, but not with a usable summary."""


class InputValidationError(SummarizerError):
    """Caller input was malformed (e.g. blank thread id)."""


class ConfigError(SummarizerError):
    """Configuration file or environment is invalid."""
