"""Unit tests for ProviderRegistry ordering and lookups."""

from __future__ import annotations

import pytest

from llm_failover.circuit_breaker import ProviderRegistry
from llm_failover.circuit_breaker_config import CircuitBreakerConfig, CircuitState
from llm_failover.clock import ManualClock
from llm_failover.errors import UnknownProviderError
from llm_failover.models import ProviderConfig


def _config(provider_id: str, priority: int) -> ProviderConfig:
    return ProviderConfig(provider_id, priority=priority, model_id=f"{provider_id}-model")


class TestOrdering:
    def test_sorted_by_priority(self) -> None:
        registry = ProviderRegistry([_config("b", 2), _config("c", 3), _config("a", 1)])
        assert [p.id for p in registry.get_ordered_candidates()] == ["a", "b", "c"]
        assert registry.provider_ids == ["a", "b", "c"]

    def test_ties_keep_registration_order(self) -> None:
        registry = ProviderRegistry([_config("x", 1), _config("y", 1), _config("z", 0)])
        assert registry.provider_ids == ["z", "x", "y"]

    def test_ordering_ignores_circuit_state(self) -> None:
        registry = ProviderRegistry(
            [_config("a", 1), _config("b", 2)],
            config=CircuitBreakerConfig(failure_threshold=1),
        )
        registry.get_circuit_breaker("a").record_failure()
        assert registry.get_circuit_breaker("a").state is CircuitState.OPEN
        assert registry.provider_ids == ["a", "b"]

    def test_empty_registry(self) -> None:
        registry = ProviderRegistry()
        assert registry.get_ordered_candidates() == ()
        assert len(registry) == 0


class TestLookups:
    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate provider id"):
            ProviderRegistry([_config("a", 1), _config("a", 2)])

    def test_unknown_breaker(self) -> None:
        registry = ProviderRegistry([_config("a", 1)])
        with pytest.raises(UnknownProviderError, match="missing"):
            registry.get_circuit_breaker("missing")

    def test_unknown_provider_is_lookup_error(self) -> None:
        registry = ProviderRegistry([_config("a", 1)])
        with pytest.raises(LookupError):
            registry.get_provider("missing")

    def test_breakers_are_stable_instances(self) -> None:
        registry = ProviderRegistry([_config("a", 1)])
        assert registry.get_circuit_breaker("a") is registry.get_circuit_breaker("a")
        assert "a" in registry
        assert "b" not in registry

    def test_breakers_share_config_and_clock(self) -> None:
        clock = ManualClock()
        config = CircuitBreakerConfig(failure_threshold=2, reset_timeout_ms=10)
        registry = ProviderRegistry([_config("a", 1)], config=config, clock=clock)
        breaker = registry.get_circuit_breaker("a")
        assert breaker.config is config
        assert registry.clock is clock

    def test_list_all(self) -> None:
        registry = ProviderRegistry(
            [_config("b", 2), _config("a", 1)],
            config=CircuitBreakerConfig(failure_threshold=1),
        )
        registry.get_circuit_breaker("b").record_failure()

        listed = registry.list_all()
        assert [(r.config.id, r.circuit_state) for r in listed] == [
            ("a", CircuitState.CLOSED),
            ("b", CircuitState.OPEN),
        ]


class TestProviderConfig:
    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProviderConfig("", priority=1, model_id="m")

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ProviderConfig("a", priority=1, model_id="m", call_timeout_ms=0)
