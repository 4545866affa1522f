"""Closed set of failure shapes handed to the classifier.

Everything raised by a collaborator is normalized into one of three variants
at the phase boundary, so classification never has to inspect attributes of
unknown objects.
"""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Union

import requests

from thread_summarizer.errors.exceptions import UpstreamError

TIMEOUT_MESSAGE = "Request timeout - upstream did not respond in time"
NETWORK_MESSAGE = "Network error - unable to connect to upstream service"


@dataclass(frozen=True)
class HttpFailure:
    """Upstream answered with an error status."""

    status: int
    message: str = ""
    retry_after: int | None = None


@dataclass(frozen=True)
class NativeFailure:
    """A local exception or plain error message."""

    message: str


@dataclass(frozen=True)
class UnknownFailure:
    """Nothing usable was supplied (None, or an object that cannot be read)."""


Failure = Union[HttpFailure, NativeFailure, UnknownFailure]


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def normalize_failure(raw: object) -> Failure:
    """Convert any raised value into a ``Failure`` variant. Never raises."""
    if isinstance(raw, (HttpFailure, NativeFailure, UnknownFailure)):
        return raw
    if raw is None:
        return UnknownFailure()
    if isinstance(raw, str):
        return NativeFailure(raw)
    if isinstance(raw, UpstreamError):
        message = _safe_str(raw)
        if raw.status_code is not None:
            return HttpFailure(raw.status_code, message, raw.retry_after)
        return NativeFailure(message)
    if isinstance(raw, (requests.Timeout, FutureTimeoutError, TimeoutError)):
        return NativeFailure(TIMEOUT_MESSAGE)
    if isinstance(raw, (requests.ConnectionError, ConnectionError)):
        return NativeFailure(NETWORK_MESSAGE)
    if isinstance(raw, requests.HTTPError) and raw.response is not None:
        return HttpFailure(raw.response.status_code, _safe_str(raw))
    if isinstance(raw, BaseException):
        return NativeFailure(_safe_str(raw))
    return UnknownFailure()


__all__ = [
    "Failure",
    "HttpFailure",
    "NativeFailure",
    "UnknownFailure",
    "normalize_failure",
]
