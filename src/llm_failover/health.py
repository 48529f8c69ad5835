"""Health monitoring and administrative reset for provider circuits.

Read-only snapshots are built from each breaker's own lock, so reporting
never blocks or interferes with in-flight orchestrator calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .circuit_breaker import ProviderRegistry
from .circuit_breaker_config import CircuitState
from .models import ProviderConfig

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Overall health of the provider pool."""

    HEALTHY = "healthy"  # All circuits closed
    DEGRADED = "degraded"  # Some circuits open/half-open
    UNHEALTHY = "unhealthy"  # No closed circuit, or no providers at all


@dataclass(frozen=True)
class ProviderHealth:
    """Health record for one provider."""

    provider_id: str
    priority: int
    model_id: str
    state: CircuitState
    consecutive_failures: int
    opened_at: float | None
    last_failure_at: float | None = None
    last_success_at: float | None = None
    total_failures: int = 0
    total_successes: int = 0
    time_until_retry_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "provider_id": self.provider_id,
            "priority": self.priority,
            "model_id": self.model_id,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "opened_at": self.opened_at,
            "last_failure_at": self.last_failure_at,
            "last_success_at": self.last_success_at,
            "total_failures": self.total_failures,
            "total_successes": self.total_successes,
            "time_until_retry_ms": self.time_until_retry_ms,
        }


@dataclass
class HealthSummary:
    """Aggregate health across all registered providers."""

    status: HealthStatus
    providers: list[ProviderHealth] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def _count(self, state: CircuitState) -> int:
        return sum(1 for p in self.providers if p.state is state)

    @property
    def total_providers(self) -> int:
        return len(self.providers)

    @property
    def providers_closed(self) -> int:
        return self._count(CircuitState.CLOSED)

    @property
    def providers_open(self) -> int:
        return self._count(CircuitState.OPEN)

    @property
    def providers_half_open(self) -> int:
        return self._count(CircuitState.HALF_OPEN)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "total_providers": self.total_providers,
            "providers_closed": self.providers_closed,
            "providers_open": self.providers_open,
            "providers_half_open": self.providers_half_open,
            "providers": [p.to_dict() for p in self.providers],
        }


class HealthMonitor:
    """Read and reset the circuit state of every registered provider.

    Usage:
        monitor = HealthMonitor(registry)
        for record in monitor.get_status():
            print(record.provider_id, record.state.value)
        monitor.reset_all()
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def _health_for(self, provider: ProviderConfig, now: float) -> ProviderHealth:
        breaker = self._registry.get_circuit_breaker(provider.id)
        snapshot = breaker.snapshot(now)
        return ProviderHealth(
            provider_id=provider.id,
            priority=provider.priority,
            model_id=provider.model_id,
            state=snapshot.state,
            consecutive_failures=snapshot.consecutive_failures,
            opened_at=snapshot.opened_at,
            last_failure_at=snapshot.last_failure_at,
            last_success_at=snapshot.last_success_at,
            total_failures=snapshot.total_failures,
            total_successes=snapshot.total_successes,
            time_until_retry_ms=breaker.get_time_until_retry(now),
        )

    def get_status(self) -> list[ProviderHealth]:
        """Return one health record per provider, in priority order.

        Applies the lazy Open -> Half-Open transition (without granting a
        trial call) so an elapsed reset timeout is reported as half_open.
        """
        now = self._registry.clock.now_ms()
        return [self._health_for(p, now) for p in self._registry.get_ordered_candidates()]

    def get_provider(self, provider_id: str) -> ProviderHealth:
        """Return the health record for one provider.

        Raises:
            UnknownProviderError: If the id is not registered.
        """
        provider = self._registry.get_provider(provider_id)
        return self._health_for(provider, self._registry.clock.now_ms())

    def get_summary(self) -> HealthSummary:
        """Return the overall health status plus every provider record."""
        providers = self.get_status()
        return HealthSummary(status=_calculate_health_status(providers), providers=providers)

    def reset_provider(self, provider_id: str) -> bool:
        """Force one provider's circuit back to CLOSED.

        Returns:
            True if the circuit was not already closed.

        Raises:
            UnknownProviderError: If the id is not registered.
        """
        changed = self._registry.get_circuit_breaker(provider_id).reset()
        logger.info("Reset circuit for %s (changed=%s)", provider_id, changed)
        return changed

    def reset_all(self) -> int:
        """Reset every registered provider's circuit. Never fails.

        Returns:
            Number of circuits that were not already closed.
        """
        reset_count = 0
        for provider_id in self._registry.provider_ids:
            if self._registry.get_circuit_breaker(provider_id).reset():
                reset_count += 1
        logger.info("Reset all circuits (%d changed)", reset_count)
        return reset_count


def _calculate_health_status(providers: list[ProviderHealth]) -> HealthStatus:
    """Calculate overall health from provider states.

    - UNHEALTHY: no providers, or none of them closed
    - DEGRADED: at least one provider open or half-open
    - HEALTHY: every provider closed
    """
    closed = sum(1 for p in providers if p.state is CircuitState.CLOSED)
    if closed == 0:
        return HealthStatus.UNHEALTHY
    if closed < len(providers):
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
