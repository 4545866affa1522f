"""Shared request loop for the Foru.ms and chat-completions clients."""

from __future__ import annotations

import time
from typing import Dict, Optional, Type

import requests
from requests import Response
from requests.exceptions import ConnectionError, RequestException, Timeout

from thread_summarizer.errors.exceptions import UpstreamError


def retry_after_header(response: Response) -> Optional[int]:
    """Integer value of a ``Retry-After`` header, if present and numeric."""
    value = response.headers.get("Retry-After")
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


def request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    service_name: str,
    error_cls: Type[UpstreamError],
    headers: Dict[str, str],
    timeout: float,
    max_retries: int = 1,
    not_found: Optional[str] = None,
    **kwargs,
) -> object:
    """Send a request and return its decoded JSON body.

    5xx responses, timeouts and other transport errors are retried with
    ``2 ** attempt`` second backoff up to ``max_retries`` attempts. Every
    failure is raised as ``error_cls`` carrying the HTTP status where there
    is one.
    """
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        last_attempt = attempt == attempts - 1
        try:
            response: Response = session.request(
                method, url, headers=headers, timeout=timeout, **kwargs
            )
            status = response.status_code
            if status >= 500:
                if not last_attempt:
                    time.sleep(2 ** attempt)
                    continue
                raise error_cls(
                    f"{service_name} request failed with status {status}",
                    status_code=status,
                )
            if status == 401:
                raise error_cls("Authentication failed - invalid API key", status_code=401)
            if status == 404:
                raise error_cls(
                    not_found or f"{service_name} resource not found", status_code=404
                )
            if status == 429:
                raise error_cls(
                    f"Rate limit exceeded for {service_name} - please try again later",
                    status_code=429,
                    retry_after=retry_after_header(response),
                )
            if status >= 400:
                raise error_cls(
                    f"{service_name} request failed with status {status}",
                    status_code=status,
                )
            return response.json()
        except Timeout:
            if not last_attempt:
                time.sleep(2 ** attempt)
                continue
            raise error_cls(f"Request timeout - {service_name} did not respond in time")
        except ConnectionError:
            raise error_cls(f"Network error - unable to connect to {service_name}")
        except ValueError:
            raise error_cls(f"Invalid JSON received from {service_name}")
        except RequestException as exc:
            if not last_attempt:
                time.sleep(2 ** attempt)
                continue
            raise error_cls(f"Request failed: {exc}")

    raise error_cls("Exceeded retry budget")


__all__ = ["request_json", "retry_after_header"]
