"""
Pytest configuration and fixtures for todosync tests.
Provides record builders, in-memory replicas and a no-delay retry policy.
"""

import os

import pytest
from prometheus_client import CollectorRegistry

from todosync.accessors import InMemoryAccessor
from todosync.models import Record
from todosync.utils.metrics import SyncMetrics
from todosync.utils.retry import RetryPolicy


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


def make_record(
    record_id: str,
    updated_at: str = "2024-01-01T00:00:00.000Z",
    content: str | None = None,
    completed: bool = False,
    created_at: str = "2024-01-01T00:00:00.000Z",
) -> Record:
    """Build a record with sensible defaults."""
    return Record(
        id=record_id,
        content=content if content is not None else f"todo {record_id}",
        completed=completed,
        created_at=created_at,
        updated_at=updated_at,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy with no backoff delay so retries run instantly."""
    return RetryPolicy(max_attempts=3, base_delay=0.0, timeout=5.0)


@pytest.fixture
def replica_a() -> InMemoryAccessor:
    return InMemoryAccessor(name="local")


@pytest.fixture
def replica_b() -> InMemoryAccessor:
    return InMemoryAccessor(name="deployed")


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def sync_metrics(metrics_registry: CollectorRegistry) -> SyncMetrics:
    return SyncMetrics(registry=metrics_registry)


@pytest.fixture(autouse=True)
def clear_sync_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's replica settings out of the tests."""
    for key in list(os.environ):
        if key.startswith(("LOCAL_", "DEPLOYED_", "SYNC_", "AMPLIFY_", "OTLP_")):
            monkeypatch.delenv(key, raising=False)
