"""Unit tests for the FailoverService facade."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from llm_failover.circuit_breaker_config import CircuitState
from llm_failover.clock import ManualClock
from llm_failover.config import FailoverSettings
from llm_failover.errors import (
    AllProvidersExhaustedError,
    NoProvidersConfiguredError,
    TransientProviderError,
    UnknownProviderError,
)
from llm_failover.providers import MockProviderAdapter
from llm_failover.service import FailoverService


class Recipe(BaseModel):
    title: str
    servings: int


def _settings(**overrides: object) -> FailoverSettings:
    values: dict[str, object] = {"failure_threshold": 2, "max_retries": 0, "retry_delay_ms": 10}
    values.update(overrides)
    return FailoverSettings(**values)  # type: ignore[arg-type]


@pytest.fixture
def adapters() -> dict[str, MockProviderAdapter]:
    return {
        "openai": MockProviderAdapter("openai"),
        "anthropic": MockProviderAdapter("anthropic"),
    }


@pytest.fixture
def service(adapters: dict[str, MockProviderAdapter]) -> FailoverService:
    return FailoverService.from_settings(_settings(), adapters, ManualClock())


class TestFromSettings:
    def test_registers_providers_in_priority_order(self, service: FailoverService) -> None:
        assert service.registry.provider_ids == ["openai", "anthropic"]

    def test_skips_providers_without_adapter(self) -> None:
        service = FailoverService.from_settings(
            _settings(), {"anthropic": MockProviderAdapter("anthropic")}, ManualClock()
        )
        assert service.registry.provider_ids == ["anthropic"]

    def test_no_adapters_yields_empty_registry(self) -> None:
        service = FailoverService.from_settings(_settings(), {}, ManualClock())
        assert len(service.registry) == 0
        assert service.get_health_summary().status.value == "unhealthy"

    async def test_empty_registry_raises_on_call(self) -> None:
        service = FailoverService.from_settings(_settings(), {}, ManualClock())
        with pytest.raises(NoProvidersConfiguredError):
            await service.generate_text_with_failover("hello")

    def test_default_adapters_skip_missing_keys(self) -> None:
        service = FailoverService.from_settings(_settings(api_keys={}), clock=ManualClock())
        assert len(service.registry) == 0


class TestCapabilities:
    async def test_generate_object_validates_schema(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = {"title": "Pancakes", "servings": 4}

        result = await service.generate_object_with_failover(Recipe, "pancakes")

        assert isinstance(result.value, Recipe)
        assert result.value.title == "Pancakes"
        assert result.provider_id == "openai"
        assert result.model_id == "gpt-4o"

    async def test_generate_object_invalid_output_raises(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = {"title": "Pancakes"}

        with pytest.raises(ValidationError):
            await service.generate_object_with_failover(Recipe, "pancakes")

    async def test_generate_text_fails_over(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = TransientProviderError("503 service unavailable")

        result = await service.generate_text_with_failover("hello")

        assert result.value == "anthropic response"
        assert [a.provider_id for a in result.failed_over] == ["openai"]

    async def test_stream_text(self, service: FailoverService) -> None:
        result = await service.stream_text_with_failover("hello")
        assert await result.value.collect() == "openai response"

    async def test_all_providers_fail(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = TransientProviderError("timeout")
        adapters["anthropic"].default = TransientProviderError("overloaded")

        with pytest.raises(AllProvidersExhaustedError) as exc_info:
            await service.generate_text_with_failover("hello")

        assert exc_info.value.provider_ids == ["openai", "anthropic"]


class TestAdministration:
    async def test_health_and_reset(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = TransientProviderError("503")
        await service.generate_text_with_failover("one")
        await service.generate_text_with_failover("two")

        status = {p.provider_id: p.state for p in service.get_provider_health_status()}
        assert status == {"openai": CircuitState.OPEN, "anthropic": CircuitState.CLOSED}

        assert service.reset_circuit_breaker("openai") is True
        assert service.get_provider_health_status()[0].state is CircuitState.CLOSED

    async def test_reset_all(
        self, service: FailoverService, adapters: dict[str, MockProviderAdapter]
    ) -> None:
        adapters["openai"].default = TransientProviderError("503")
        await service.generate_text_with_failover("one")
        await service.generate_text_with_failover("two")

        assert service.reset_all_circuit_breakers() == 1
        assert service.reset_all_circuit_breakers() == 0

    def test_reset_unknown_provider(self, service: FailoverService) -> None:
        with pytest.raises(UnknownProviderError):
            service.reset_circuit_breaker("mistral")

    async def test_close(self, service: FailoverService) -> None:
        await service.close()
