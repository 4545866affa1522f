"""HTTP client for an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from thread_summarizer.errors.exceptions import AgentClientError
from thread_summarizer.transport import request_json

SERVICE_NAME = "AI service"


@dataclass
class AgentResponse:
    """Container for chat-completion responses."""

    message: Dict
    raw: Dict


class AgentClient:
    """Small wrapper around the ``/v1/chat/completions`` API.

    A single call spends at most ``timeout * max_retries`` seconds on the
    wire, plus backoff sleeps between attempts.
    """

    def __init__(
        self,
        base_url: str = "https://api.openai.com",
        api_key: Optional[str] = None,
        timeout: float = 30,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._session = session or requests.Session()

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1500,
        model: Optional[str] = None,
        response_format: Optional[Dict] = None,
    ) -> AgentResponse:
        """Call ``/v1/chat/completions`` and return the first choice."""

        payload: Dict[str, object] = {
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if model:
            payload["model"] = model
        if response_format:
            payload["response_format"] = response_format

        data = request_json(
            self._session,
            "POST",
            f"{self.base_url}/v1/chat/completions",
            service_name=SERVICE_NAME,
            error_cls=AgentClientError,
            headers=self._headers(),
            timeout=self.timeout,
            max_retries=self.max_retries,
            json=payload,
        )
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AgentClientError(f"Malformed response from AI service: {exc}")

        return AgentResponse(message=message, raw=data)

    def close(self) -> None:
        self._session.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers
