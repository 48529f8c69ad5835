"""LLM provider failover with per-provider circuit breakers.

Routes generation calls (objects, text, streamed text) across several
interchangeable AI providers, retrying transient failures and skipping
providers whose circuit is open.
"""

from .circuit_breaker import (
    CircuitBreakerError,
    CircuitOpenError,
    ProviderCircuitBreaker,
    ProviderRegistry,
    RegisteredProvider,
)
from .circuit_breaker_config import CircuitBreakerConfig, CircuitState, RetryPolicy
from .clock import Clock, ManualClock, SystemClock
from .config import FailoverSettings
from .errors import (
    AllProvidersExhaustedError,
    ConfigurationError,
    FailoverError,
    FailureClassification,
    FatalProviderError,
    NoProvidersConfiguredError,
    ProviderError,
    TransientProviderError,
    UnknownProviderError,
    classify_error,
)
from .health import HealthMonitor, HealthStatus, HealthSummary, ProviderHealth
from .models import (
    Capability,
    CircuitSnapshot,
    GenerationOptions,
    ProviderAttempt,
    ProviderConfig,
    ProviderRequest,
    ProviderResult,
)
from .orchestrator import ExecutionOrchestrator
from .providers import MockProviderAdapter, ProviderAdapter
from .service import FailoverService
from .streaming import TextStream

__version__ = "0.1.0"

__all__ = [
    "AllProvidersExhaustedError",
    "Capability",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitOpenError",
    "CircuitSnapshot",
    "CircuitState",
    "Clock",
    "ConfigurationError",
    "ExecutionOrchestrator",
    "FailoverError",
    "FailoverService",
    "FailoverSettings",
    "FailureClassification",
    "FatalProviderError",
    "GenerationOptions",
    "HealthMonitor",
    "HealthStatus",
    "HealthSummary",
    "ManualClock",
    "MockProviderAdapter",
    "NoProvidersConfiguredError",
    "ProviderAdapter",
    "ProviderAttempt",
    "ProviderCircuitBreaker",
    "ProviderConfig",
    "ProviderError",
    "ProviderHealth",
    "ProviderRegistry",
    "ProviderRequest",
    "ProviderResult",
    "RegisteredProvider",
    "RetryPolicy",
    "SystemClock",
    "TextStream",
    "TransientProviderError",
    "UnknownProviderError",
    "classify_error",
    "__version__",
]
