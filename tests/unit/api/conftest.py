"""Shared fixtures for API unit tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from llm_failover.api import dependencies
from llm_failover.circuit_breaker import ProviderRegistry
from llm_failover.circuit_breaker_config import CircuitBreakerConfig
from llm_failover.clock import ManualClock
from llm_failover.models import ProviderConfig
from llm_failover.providers import MockProviderAdapter
from llm_failover.service import FailoverService


@pytest.fixture(autouse=True)
def reset_service_singleton() -> Iterator[None]:
    """Ensure each test starts and ends without an initialized service."""
    dependencies._service = None
    yield
    dependencies._service = None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=1_000_000)


@pytest.fixture
def failover_service(clock: ManualClock) -> FailoverService:
    """Two mock providers, threshold 2, reset timeout 60s."""
    registry = ProviderRegistry(
        [
            ProviderConfig("openai", priority=1, model_id="gpt-4o"),
            ProviderConfig("anthropic", priority=2, model_id="claude-3-opus-20240229"),
        ],
        CircuitBreakerConfig(failure_threshold=2, reset_timeout_ms=60_000),
        clock,
    )
    adapters = {
        "openai": MockProviderAdapter("openai"),
        "anthropic": MockProviderAdapter("anthropic"),
    }
    return FailoverService(registry, adapters, clock=clock)

