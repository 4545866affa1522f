"""AI summary generation for forum threads."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Sequence

from thread_summarizer.errors.exceptions import SummaryGenerationError
from thread_summarizer.errors.fallback import new_thread_summary
from thread_summarizer.models import (
    Contributor,
    ForumPost,
    ForumThread,
    Sentiment,
    SummaryData,
    health_label_for,
)
from thread_summarizer.prompts import (
    RESPONSE_FORMAT,
    SYSTEM_PROMPT,
    THREAD_ANALYSIS_PROMPT,
)

if TYPE_CHECKING:
    from thread_summarizer.agent_client import AgentClient

LOGGER = logging.getLogger(__name__)

MAX_SUMMARY_ITEMS = 5
MAX_KEY_POINTS = 5
MAX_CONTRIBUTORS = 4
FULL_THREAD_POST_LIMIT = 20
_VALID_SENTIMENTS = {"Positive", "Neutral", "Mixed", "Negative"}


def select_posts_for_prompt(posts: Sequence[ForumPost]) -> list[ForumPost]:
    """Trim long threads to the posts most useful for the model.

    Up to 20 posts are passed through unchanged. Longer threads keep the
    first three and last three posts plus up to fourteen of the longest
    middle posts (over 50 chars), in chronological order.
    """
    if len(posts) <= FULL_THREAD_POST_LIMIT:
        return list(posts)

    head = list(posts[:3])
    tail = list(posts[-3:])
    middle = [p for p in posts[3:-3] if len(p.body) > 50]
    middle.sort(key=lambda p: len(p.body), reverse=True)
    substantive = middle[:14]
    order = {id(p): i for i, p in enumerate(posts)}
    substantive.sort(key=lambda p: order[id(p)])

    selected: list[ForumPost] = []
    seen: set[str] = set()
    for post in head + substantive + tail:
        if post.id in seen:
            continue
        seen.add(post.id)
        selected.append(post)
    return selected


def build_prompt(thread: ForumThread, posts: Sequence[ForumPost]) -> str:
    posts_text = "\n\n".join(
        f"@{post.username}: {post.body}" for post in select_posts_for_prompt(posts)
    )
    return THREAD_ANALYSIS_PROMPT.format(
        title=thread.title,
        body=thread.body,
        post_count=len(posts),
        posts=posts_text,
    )


def parse_summary(content: str) -> SummaryData:
    """Validate model JSON output and derive the health label.

    Raises:
        SummaryGenerationError: If the content is not a valid summary.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise SummaryGenerationError(f"AI response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SummaryGenerationError("AI response is not a JSON object")

    for name in ("summary", "keyPoints", "contributors"):
        if not isinstance(data.get(name), list):
            raise SummaryGenerationError(f"Invalid {name} field in AI response")

    sentiment = data.get("sentiment")
    if sentiment not in _VALID_SENTIMENTS:
        raise SummaryGenerationError(f"Invalid sentiment value: {sentiment!r}")

    score = data.get("healthScore")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 1 <= score <= 10:
        raise SummaryGenerationError("Invalid healthScore field in AI response")
    score = int(score)

    contributors = []
    for index, item in enumerate(data["contributors"][:MAX_CONTRIBUTORS]):
        if not isinstance(item, dict):
            raise SummaryGenerationError(f"Invalid contributor {index}")
        username = item.get("username")
        contribution = item.get("contribution")
        if not isinstance(username, str) or not username:
            raise SummaryGenerationError(f"Invalid username in contributor {index}")
        if not isinstance(contribution, str) or not contribution:
            raise SummaryGenerationError(f"Invalid contribution in contributor {index}")
        contributors.append(Contributor(username=username, contribution=contribution))

    return SummaryData(
        summary=[str(s) for s in data["summary"][:MAX_SUMMARY_ITEMS]],
        key_points=[str(k) for k in data["keyPoints"][:MAX_KEY_POINTS]],
        contributors=contributors,
        sentiment=Sentiment(sentiment),
        health_score=score,
        health_label=health_label_for(score),
    )


class ThreadSummarizer:
    """Generates structured summaries through a chat-completions client."""

    def __init__(
        self,
        agent_client: AgentClient,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 1500,
    ) -> None:
        self.agent = agent_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def close(self) -> None:
        self.agent.close()

    def generate(self, thread: ForumThread, posts: Sequence[ForumPost]) -> SummaryData:
        """Summarize ``thread``; client errors propagate to the caller."""
        if not posts:
            LOGGER.info("Thread %s has no replies; skipping model call", thread.id)
            return new_thread_summary()

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(thread, posts)},
        ]
        LOGGER.debug("Requesting summary for thread %s (%d posts)", thread.id, len(posts))
        response = self.agent.chat(
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            model=self.model,
            response_format=RESPONSE_FORMAT,
        )
        content = response.message.get("content") or ""
        if not content.strip():
            raise SummaryGenerationError("No response content from AI service")
        return parse_summary(content)
