"""HTTP client for the Foru.ms thread and post endpoints."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests

from thread_summarizer.errors.exceptions import ForumsApiError
from thread_summarizer.models import ForumPost, ForumThread, ThreadData
from thread_summarizer.transport import request_json

LOGGER = logging.getLogger(__name__)

SERVICE_NAME = "Foru.ms API"
USER_AGENT = "ThreadSummarizer/1.0"


def _is_valid_thread(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    user = data.get("user")
    return (
        all(isinstance(data.get(k), str) for k in ("id", "title", "body", "createdAt"))
        and isinstance(user, dict)
        and isinstance(user.get("username"), str)
    )


def _is_valid_post(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    return all(
        isinstance(data.get(k), str)
        for k in ("id", "body", "threadId", "userId", "createdAt")
    )


class ForumsClient:
    """Fetches threads and their posts; raises ``ForumsApiError`` on failure."""

    def __init__(
        self,
        base_url: str = "https://foru.ms/api/v1",
        api_key: Optional[str] = None,
        thread_timeout: float = 10,
        posts_timeout: float = 15,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.thread_timeout = thread_timeout
        self.posts_timeout = posts_timeout
        self.max_retries = max(1, max_retries)
        self._session = session or requests.Session()

    def fetch_thread(self, thread_id: str) -> ForumThread:
        """Fetch thread metadata and opening body."""
        self._require_id(thread_id)
        data = self._get(
            f"/threads/{thread_id}",
            timeout=self.thread_timeout,
            not_found=f"Thread with ID {thread_id} not found",
        )
        if not _is_valid_thread(data):
            raise ForumsApiError("Invalid thread data received from API")
        return ForumThread.from_api(data)

    def fetch_thread_posts(self, thread_id: str) -> List[ForumPost]:
        """Fetch every post in a thread; accepts bare or paginated payloads."""
        self._require_id(thread_id)
        data = self._get(
            f"/threads/{thread_id}/posts",
            timeout=self.posts_timeout,
            not_found=f"Posts for thread {thread_id} not found",
        )
        posts = data.get("posts", []) if isinstance(data, dict) else data
        if not isinstance(posts, list) or not all(_is_valid_post(p) for p in posts):
            raise ForumsApiError("Invalid post data received from API")
        return [ForumPost.from_api(p) for p in posts]

    def fetch_complete_thread(self, thread_id: str) -> ThreadData:
        """Fetch thread and posts together."""
        thread = self.fetch_thread(thread_id)
        posts = self.fetch_thread_posts(thread_id)
        LOGGER.debug("Fetched thread %s with %d posts", thread_id, len(posts))
        return ThreadData(thread=thread, posts=posts)

    # ThreadDataProvider protocol
    fetch = fetch_complete_thread

    @staticmethod
    def _require_id(thread_id: str) -> None:
        if not thread_id or not thread_id.strip():
            raise ForumsApiError("Thread ID is required", status_code=400)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def close(self) -> None:
        self._session.close()

    def _get(self, endpoint: str, timeout: float, not_found: str) -> object:
        return request_json(
            self._session,
            "GET",
            f"{self.base_url}{endpoint}",
            service_name=SERVICE_NAME,
            error_cls=ForumsApiError,
            headers=self._headers(),
            timeout=timeout,
            max_retries=self.max_retries,
            not_found=not_found,
        )
