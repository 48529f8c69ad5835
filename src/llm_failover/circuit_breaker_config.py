"""Circuit breaker and retry configuration for provider failover.

This module defines the circuit states and the configuration dataclasses
shared by every provider breaker and by the orchestrator's retry loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_MAX_DELAY_MS = 30_000


class CircuitState(Enum):
    """Possible states for a circuit breaker."""

    CLOSED = "closed"  # Normal operation - requests allowed
    OPEN = "open"  # Circuit tripped - requests blocked
    HALF_OPEN = "half_open"  # Testing recovery - one trial request


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for provider circuit breakers.

    One config is shared by every breaker in a ProviderRegistry.

    Attributes:
        failure_threshold: Consecutive failures before opening the circuit.
        reset_timeout_ms: Time an open circuit waits before allowing a trial call.
    """

    failure_threshold: int = 5
    reset_timeout_ms: int = 60_000  # 1 minute

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.reset_timeout_ms < 1:
            raise ValueError("reset_timeout_ms must be >= 1")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour within a single provider before failing over.

    The delay before retry ``n`` (0-based) is
    ``base_delay_ms * backoff_multiplier ** n``, optionally jittered by +/-
    ``jitter`` of its value, and capped at ``max_delay_ms``.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1).
        base_delay_ms: Delay before the first retry.
        backoff_multiplier: Exponential growth factor between retries.
        max_delay_ms: Upper bound for a single delay. When None, the larger of
            DEFAULT_MAX_DELAY_MS and ``base_delay_ms``.
        jitter: Fractional jitter in [0, 1); 0 disables jitter.
    """

    max_retries: int = 3
    base_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    max_delay_ms: int | None = None
    jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.max_delay_ms is None:
            object.__setattr__(self, "max_delay_ms", max(DEFAULT_MAX_DELAY_MS, self.base_delay_ms))
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms < 1:
            raise ValueError("base_delay_ms must be >= 1")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        if not 0 <= self.jitter < 1:
            raise ValueError("jitter must be in [0, 1)")

    @property
    def max_attempts(self) -> int:
        """Total attempts allowed against one provider."""
        return self.max_retries + 1

    def delay_for(self, retry_index: int) -> float:
        """Return the un-jittered delay in ms before retry ``retry_index``."""
        delay = self.base_delay_ms * (self.backoff_multiplier**retry_index)
        return float(min(delay, self.max_delay_ms))


# Default configuration instances for convenience
DEFAULT_CONFIG = CircuitBreakerConfig()
DEFAULT_RETRY_POLICY = RetryPolicy()
