"""
Shared pytest fixtures for computejobs tests.

This module provides:
- A controllable clock for freshness/TTL tests
- Static settings providers
- In-memory and SQLite-backed stores
- A ComputationJobs instance that is shut down after each test
"""

import sys
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from computejobs.core.logging import clear_context
from computejobs.execution import ComputationJobs, InMemoryJobStore, SqlJobStore


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Time and settings
# =============================================================================


T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Deterministic clock; advance it explicitly."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@dataclass
class StaticSettings:
    """Minimal SettingsProvider for tests."""

    caching_enabled: bool = True
    ttl_ratio: float = 10.0
    max_workers: int = 4


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> StaticSettings:
    return StaticSettings()


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    yield
    clear_context()


# =============================================================================
# Stores and facade
# =============================================================================


@pytest.fixture
def memory_store(clock) -> InMemoryJobStore:
    return InMemoryJobStore(clock=clock)


@pytest.fixture
def sql_store(tmp_path, clock):
    store = SqlJobStore.from_url(f"sqlite:///{tmp_path / 'jobs.db'}", clock=clock)
    yield store
    store.engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_store(request, clock, tmp_path):
    """Each shipped store, for contract tests."""
    if request.param == "memory":
        yield InMemoryJobStore(clock=clock)
        return
    store = SqlJobStore.from_url(f"sqlite:///{tmp_path / 'contract.db'}", clock=clock)
    yield store
    store.engine.dispose()


@pytest.fixture
def jobs(memory_store, settings, clock) -> Generator[ComputationJobs, None, None]:
    service = ComputationJobs(memory_store, settings=settings, clock=clock, max_workers=4)
    yield service
    service.close(wait=True)
