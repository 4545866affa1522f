"""Data models for forum threads and their summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from thread_summarizer.cache.freshness import last_post_timestamp


class Sentiment(str, Enum):
    """Overall tone of a discussion."""

    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"
    NEGATIVE = "Negative"
    NO_DISCUSSION = "No Discussion"


class HealthLabel(str, Enum):
    """Categorical label derived from the health score."""

    HEALTHY = "Healthy"
    NEEDS_ATTENTION = "Needs Attention"
    HEATED_DISCUSSION = "Heated Discussion"
    NEW_THREAD = "New Thread"


def health_label_for(score: int) -> HealthLabel:
    """Map a 1-10 health score to its label."""
    if score >= 7:
        return HealthLabel.HEALTHY
    if score >= 4:
        return HealthLabel.NEEDS_ATTENTION
    return HealthLabel.HEATED_DISCUSSION


@dataclass
class ForumUser:
    """Author of a thread or post."""

    username: str
    id: str | None = None
    display_name: str | None = None


@dataclass
class ForumThread:
    """A thread as returned by the Foru.ms API."""

    id: str
    title: str
    body: str
    created_at: str
    updated_at: str | None = None
    user: ForumUser | None = None

    @classmethod
    def from_api(cls, data: dict) -> ForumThread:
        user = data.get("user") or {}
        return cls(
            id=data["id"],
            title=data["title"],
            body=data.get("body") or "",
            created_at=data["createdAt"],
            updated_at=data.get("updatedAt"),
            user=ForumUser(
                username=user.get("username", "Unknown User"),
                id=user.get("id"),
                display_name=user.get("displayName"),
            )
            if user
            else None,
        )


@dataclass
class ForumPost:
    """A reply within a thread."""

    id: str
    body: str
    thread_id: str
    user_id: str
    created_at: str
    user: ForumUser | None = None

    @property
    def username(self) -> str:
        """Author name, or a placeholder when the API omits the user."""
        return self.user.username if self.user else "Unknown User"

    @classmethod
    def from_api(cls, data: dict) -> ForumPost:
        user = data.get("user") or {}
        return cls(
            id=data["id"],
            body=data.get("body") or "",
            thread_id=data["threadId"],
            user_id=data["userId"],
            created_at=data["createdAt"],
            user=ForumUser(
                username=user.get("username", "Unknown User"),
                id=user.get("id"),
                display_name=user.get("displayName"),
            )
            if user
            else None,
        )


@dataclass
class Contributor:
    """A participant singled out by the summary."""

    username: str
    contribution: str


@dataclass
class SummaryData:
    """Structured summary of a thread."""

    summary: list[str]
    key_points: list[str]
    contributors: list[Contributor]
    sentiment: Sentiment
    health_score: int
    health_label: HealthLabel

    def to_dict(self) -> dict:
        """Serialize to the camelCase shape used on the wire."""
        return {
            "summary": list(self.summary),
            "keyPoints": list(self.key_points),
            "contributors": [
                {"username": c.username, "contribution": c.contribution}
                for c in self.contributors
            ],
            "sentiment": self.sentiment.value,
            "healthScore": self.health_score,
            "healthLabel": self.health_label.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SummaryData:
        """Reconstruct from the wire shape."""
        return cls(
            summary=list(data["summary"]),
            key_points=list(data.get("keyPoints", [])),
            contributors=[
                Contributor(username=c["username"], contribution=c["contribution"])
                for c in data.get("contributors", [])
            ],
            sentiment=Sentiment(data["sentiment"]),
            health_score=int(data["healthScore"]),
            health_label=HealthLabel(data["healthLabel"]),
        )


@dataclass
class ThreadStats:
    """Basic counts reported alongside fallback summaries."""

    post_count: int
    contributor_count: int
    created_at: str

    def to_dict(self) -> dict:
        return {
            "postCount": self.post_count,
            "contributorCount": self.contributor_count,
            "createdAt": self.created_at,
        }


@dataclass
class FallbackSummary(SummaryData):
    """Placeholder summary returned when generation cannot proceed."""

    thread_stats: ThreadStats = field(
        default_factory=lambda: ThreadStats(0, 0, datetime.now(timezone.utc).isoformat())
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["threadStats"] = self.thread_stats.to_dict()
        return data


@dataclass
class ThreadData:
    """A thread together with all of its posts."""

    thread: ForumThread
    posts: list[ForumPost] = field(default_factory=list)

    @property
    def last_post_timestamp(self) -> str:
        """Freshness component of the cache key (epoch milliseconds)."""
        return last_post_timestamp(self.thread, self.posts)
