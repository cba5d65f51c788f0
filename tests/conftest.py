"""Shared fixtures for tracker_query tests."""

from __future__ import annotations

import pytest

from tracker_query import (
    CacheConfig,
    QueryCompiler,
    QueryOrchestrator,
    QueryValidator,
    ResultCache,
)
from tracker_query.adapters.memory import InMemoryQueryExecutor


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def compiler():
    return QueryCompiler()


@pytest.fixture
def validator():
    return QueryValidator()


@pytest.fixture
def cache(clock):
    """Isolated cache driven by the fake clock."""
    return ResultCache(CacheConfig(), clock=clock)


@pytest.fixture
def records():
    return [{"idReadable": f"YTM-{i}", "summary": f"Issue {i}"} for i in range(1, 6)]


@pytest.fixture
def executor(records):
    return InMemoryQueryExecutor(records)


@pytest.fixture
def orchestrator(executor, cache):
    return QueryOrchestrator(executor, cache)
