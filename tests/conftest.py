"""Shared pytest fixtures for thread-summarizer tests."""

from __future__ import annotations

import pytest

from thread_summarizer.models import (
    Contributor,
    HealthLabel,
    Sentiment,
    SummaryData,
)

from tests.factories import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def summary_data() -> SummaryData:
    return SummaryData(
        summary=["Users compared caching strategies", "Consensus on TTLs"],
        key_points=["TTL keeps memory bounded", "Keys change on new posts", "Eviction is FIFO"],
        contributors=[
            Contributor(username="alice", contribution="Benchmarked the options"),
            Contributor(username="bob", contribution="Raised memory concerns"),
        ],
        sentiment=Sentiment.POSITIVE,
        health_score=8,
        health_label=HealthLabel.HEALTHY,
    )
