"""Circuit breaker exception classes."""

from __future__ import annotations

from ..circuit_breaker_config import CircuitState
from ..errors import FailoverError


class CircuitBreakerError(FailoverError):
    """Base exception for circuit breaker errors."""

    pass


class CircuitOpenError(CircuitBreakerError):
    """Raised or recorded when a provider's circuit blocks a call.

    Attributes:
        provider_id: Provider whose circuit refused the call.
        time_until_retry_ms: Remaining reset timeout (0 while HALF_OPEN).
        state: Circuit state at the time of the refusal.
    """

    def __init__(
        self,
        provider_id: str,
        time_until_retry_ms: float,
        state: CircuitState = CircuitState.OPEN,
    ) -> None:
        self.provider_id = provider_id
        self.time_until_retry_ms = time_until_retry_ms
        self.state = state
        if state is CircuitState.HALF_OPEN:
            message = f"Circuit {provider_id} is half_open with a trial call in flight"
        else:
            message = (
                f"Circuit {provider_id} is {state.value}. "
                f"Retry in {time_until_retry_ms / 1000:.1f}s"
            )
        super().__init__(message)
