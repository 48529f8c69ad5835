"""Circuit breaker implementation for provider failover.

Implements the circuit breaker pattern per provider to stop sending
requests to a backend that keeps failing.

The circuit breaker has three states:
- CLOSED: Normal operation, failures are counted
- OPEN: Circuit tripped, requests are skipped
- HALF_OPEN: Testing recovery, a single trial request allowed
"""

from .exceptions import CircuitBreakerError, CircuitOpenError
from .provider import ProviderCircuitBreaker
from .registry import ProviderRegistry, RegisteredProvider

__all__ = [
    "CircuitBreakerError",
    "CircuitOpenError",
    "ProviderCircuitBreaker",
    "ProviderRegistry",
    "RegisteredProvider",
]
