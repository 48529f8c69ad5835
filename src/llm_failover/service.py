"""Public operation surface for provider failover.

FailoverService wires one ProviderRegistry, ExecutionOrchestrator and
HealthMonitor together and exposes the capability entry points used by
the rest of an application, plus the administrative reset operations.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel

from .circuit_breaker import ProviderRegistry
from .circuit_breaker_config import RetryPolicy
from .clock import Clock
from .config import FailoverSettings
from .health import HealthMonitor, HealthSummary, ProviderHealth
from .models import Capability, GenerationOptions, ProviderRequest, ProviderResult
from .orchestrator import ExecutionOrchestrator
from .providers import ProviderAdapter, build_default_adapters
from .streaming import TextStream

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class FailoverService:
    """Capability calls with automatic provider failover.

    Usage:
        service = FailoverService.from_settings()

        result = await service.generate_object_with_failover(
            Recipe, "A recipe for pancakes"
        )
        print(result.provider_id, result.value.title)

    Attributes:
        registry: Providers and their circuit breakers.
        orchestrator: Retry/failover execution loop.
        monitor: Health reporting and circuit reset.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: Mapping[str, ProviderAdapter],
        retry_policy: RetryPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.registry = registry
        self.orchestrator = ExecutionOrchestrator(registry, adapters, retry_policy, clock)
        self.monitor = HealthMonitor(registry)

    @classmethod
    def from_settings(
        cls,
        settings: FailoverSettings | None = None,
        adapters: Mapping[str, ProviderAdapter] | None = None,
        clock: Clock | None = None,
    ) -> FailoverService:
        """Build a service from settings, creating SDK adapters if none are given.

        Enabled providers without an adapter (typically a missing API key)
        are left out of the registry.

        Args:
            settings: Failover settings. Loaded from the environment if None.
            adapters: Adapter per provider id. Built from settings if None.
            clock: Time source shared by breakers and backoff.
        """
        settings = settings or FailoverSettings.from_env()
        if adapters is None:
            adapters = build_default_adapters(settings)

        configs = []
        for config in settings.provider_configs():
            if config.id in adapters:
                configs.append(config)
            else:
                logger.warning("Provider %s has no adapter and will not be registered", config.id)

        if not configs:
            logger.warning("No AI providers are configured; capability calls will fail")

        registry = ProviderRegistry(configs, settings.circuit_breaker_config(), clock)
        return cls(registry, adapters, settings.retry_policy(), clock)

    async def generate_object_with_failover(
        self,
        schema: type[SchemaT],
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> ProviderResult[SchemaT]:
        """Generate an object matching ``schema`` from the first healthy provider.

        Raises:
            AllProvidersExhaustedError: If no provider produced a response.
            NoProvidersConfiguredError: If no provider is registered.
            pydantic.ValidationError: If the serving provider's object does
                not validate against ``schema``.
        """
        request = ProviderRequest(
            Capability.GENERATE_OBJECT, prompt, options or GenerationOptions(), schema
        )
        result = await self.orchestrator.execute(Capability.GENERATE_OBJECT, request)
        value = schema.model_validate(result.value)
        return dataclasses.replace(result, value=value)

    async def generate_text_with_failover(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResult[str]:
        """Generate free text from the first healthy provider."""
        request = ProviderRequest(Capability.GENERATE_TEXT, prompt, options or GenerationOptions())
        return await self.orchestrator.execute(Capability.GENERATE_TEXT, request)

    async def stream_text_with_failover(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> ProviderResult[TextStream]:
        """Open a cancellable text stream from the first healthy provider."""
        request = ProviderRequest(Capability.STREAM_TEXT, prompt, options or GenerationOptions())
        return await self.orchestrator.execute(Capability.STREAM_TEXT, request)

    def get_provider_health_status(self) -> list[ProviderHealth]:
        """Return per-provider health records in priority order."""
        return self.monitor.get_status()

    def get_health_summary(self) -> HealthSummary:
        return self.monitor.get_summary()

    def reset_circuit_breaker(self, provider_id: str) -> bool:
        """Force one provider's circuit closed.

        Raises:
            UnknownProviderError: If the id is not registered.
        """
        return self.monitor.reset_provider(provider_id)

    def reset_all_circuit_breakers(self) -> int:
        """Force every circuit closed; returns how many were not closed."""
        return self.monitor.reset_all()

    async def close(self) -> None:
        """Close adapter SDK clients."""
        for adapter in self.orchestrator.adapters.values():
            close = getattr(adapter, "close", None)
            if close is not None:
                await close()
