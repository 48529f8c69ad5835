"""Provider registry owning one circuit breaker per configured provider.

The registry is constructed once and passed explicitly to the orchestrator
and the health monitor, so every concurrent call in the process shares the
same breakers while tests can build independent registries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..circuit_breaker_config import DEFAULT_CONFIG, CircuitBreakerConfig, CircuitState
from ..clock import Clock, SystemClock
from ..errors import UnknownProviderError
from ..models import ProviderConfig
from .provider import ProviderCircuitBreaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredProvider:
    """A provider config paired with its current circuit state."""

    config: ProviderConfig
    circuit_state: CircuitState


class ProviderRegistry:
    """Central registry for configured providers and their circuit breakers.

    Breakers are created at construction and live for the lifetime of the
    registry; they are mutated in place and never replaced.

    Usage:
        registry = ProviderRegistry(
            [
                ProviderConfig("openai", priority=1, model_id="gpt-4o"),
                ProviderConfig("anthropic", priority=2, model_id="claude-3-opus-20240229"),
            ],
            config=CircuitBreakerConfig(failure_threshold=5),
        )

        for provider in registry.get_ordered_candidates():
            breaker = registry.get_circuit_breaker(provider.id)

    Attributes:
        config: Circuit breaker configuration shared by all providers.
        clock: Time source shared by all breakers.
    """

    def __init__(
        self,
        providers: Iterable[ProviderConfig] = (),
        config: CircuitBreakerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the provider registry.

        Args:
            providers: Provider configurations in registration order.
            config: Breaker configuration. Uses DEFAULT_CONFIG if None.
            clock: Time source. Uses SystemClock if None.

        Raises:
            ValueError: If two providers share an id.
        """
        self._config = config or DEFAULT_CONFIG
        self._clock = clock or SystemClock()

        self._providers: list[ProviderConfig] = []
        self._breakers: dict[str, ProviderCircuitBreaker] = {}

        for provider in providers:
            if provider.id in self._breakers:
                raise ValueError(f"Duplicate provider id: {provider.id}")
            self._providers.append(provider)
            self._breakers[provider.id] = ProviderCircuitBreaker(
                provider.id, self._config, self._clock
            )

        # sorted() is stable, so equal priorities keep registration order
        self._ordered = tuple(sorted(self._providers, key=lambda p: p.priority))

        logger.debug(
            "Registered providers: %s",
            ", ".join(f"{p.id}(priority={p.priority})" for p in self._ordered) or "none",
        )

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def provider_ids(self) -> list[str]:
        """Provider ids in priority order."""
        return [p.id for p in self._ordered]

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._breakers

    def get_ordered_candidates(self) -> tuple[ProviderConfig, ...]:
        """Return providers sorted ascending by priority.

        Pure function of configuration; circuit state is not consulted.
        """
        return self._ordered

    def get_provider(self, provider_id: str) -> ProviderConfig:
        """Look up a provider config by id.

        Raises:
            UnknownProviderError: If the id is not registered.
        """
        for provider in self._providers:
            if provider.id == provider_id:
                return provider
        raise UnknownProviderError(provider_id)

    def get_circuit_breaker(self, provider_id: str) -> ProviderCircuitBreaker:
        """Look up a provider's circuit breaker by id.

        Raises:
            UnknownProviderError: If the id is not registered.
        """
        try:
            return self._breakers[provider_id]
        except KeyError:
            raise UnknownProviderError(provider_id) from None

    def list_all(self) -> list[RegisteredProvider]:
        """Return every provider in priority order with its stored circuit state."""
        return [
            RegisteredProvider(config=p, circuit_state=self._breakers[p.id].state)
            for p in self._ordered
        ]
