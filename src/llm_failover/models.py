"""Domain models for provider failover.

This module defines the data structures passed between the registry, the
orchestrator, provider adapters and the health monitor.

A capability call flows through these types as:
    ProviderRequest -> (adapter per ProviderConfig) -> ProviderResult
with a ProviderAttempt recorded for each provider that could not serve it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from pydantic import BaseModel

    from .circuit_breaker_config import CircuitState

T = TypeVar("T")


class Capability(Enum):
    """Generation capabilities served through the orchestrator."""

    GENERATE_OBJECT = "generate_object"
    GENERATE_TEXT = "generate_text"
    STREAM_TEXT = "stream_text"

    @property
    def default_max_tokens(self) -> int:
        """Token budget used when the caller does not set one."""
        if self is Capability.GENERATE_OBJECT:
            return 4000
        return 2000


@dataclass(frozen=True)
class ProviderConfig:
    """Static configuration for one provider.

    Attributes:
        id: Unique provider identifier (e.g., "openai").
        priority: Lower values are tried first.
        model_id: Model identifier passed to the adapter.
        call_timeout_ms: Hard deadline for a single adapter call.
    """

    id: str
    priority: int
    model_id: str
    call_timeout_ms: int = 60_000

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("provider id must be a non-empty string")
        if self.call_timeout_ms < 1:
            raise ValueError(f"call_timeout_ms for {self.id} must be >= 1")


@dataclass(frozen=True)
class GenerationOptions:
    """Caller-supplied generation parameters.

    Attributes:
        system: Optional system prompt.
        max_tokens: Output token budget; capability default when None.
        temperature: Sampling temperature.
        extra: Provider-specific keyword arguments forwarded verbatim.
    """

    system: str | None = None
    max_tokens: int | None = None
    temperature: float = 0.7
    extra: dict[str, Any] = field(default_factory=dict)

    def resolved_max_tokens(self, capability: Capability) -> int:
        """Return ``max_tokens`` or the capability default."""
        if self.max_tokens is not None:
            return self.max_tokens
        return capability.default_max_tokens


@dataclass(frozen=True)
class ProviderRequest:
    """A single capability request as seen by provider adapters.

    Attributes:
        capability: Which capability is being invoked.
        prompt: User prompt text.
        options: Generation options.
        schema: Pydantic model describing the object to generate
            (GENERATE_OBJECT only).
    """

    capability: Capability
    prompt: str
    options: GenerationOptions = field(default_factory=GenerationOptions)
    schema: type[BaseModel] | None = None

    @property
    def max_tokens(self) -> int:
        return self.options.resolved_max_tokens(self.capability)

    def json_schema(self) -> dict[str, Any]:
        """Return the JSON schema for the requested object.

        Raises:
            ValueError: If the request has no schema.
        """
        if self.schema is None:
            raise ValueError(f"{self.capability.value} request has no schema")
        return self.schema.model_json_schema()


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """Successful capability result tagged with the provider that served it.

    Attributes:
        value: Capability-specific payload (object, text or stream handle).
        provider_id: Provider that produced the value.
        model_id: Model used by that provider.
        attempts: Adapter invocations made against the serving provider.
        failed_over: Providers tried (or skipped) before the serving one.
    """

    value: T
    provider_id: str
    model_id: str
    attempts: int = 1
    failed_over: list[ProviderAttempt] = field(default_factory=list)


@dataclass
class ProviderAttempt:
    """Diagnostic record for a provider that did not serve a request.

    Attributes:
        provider_id: The provider considered.
        last_error: Last error seen (a CircuitOpenError when skipped).
        attempts: Adapter invocations made; 0 when the circuit was open.
        skipped: True when the circuit blocked the call.
    """

    provider_id: str
    last_error: BaseException
    attempts: int = 0
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "provider_id": self.provider_id,
            "error": str(self.last_error),
            "error_type": type(self.last_error).__name__,
            "attempts": self.attempts,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class CircuitSnapshot:
    """Point-in-time view of one provider's circuit breaker."""

    provider_id: str
    state: CircuitState
    consecutive_failures: int
    opened_at: float | None
    last_failure_at: float | None
    last_success_at: float | None
    total_failures: int
    total_successes: int
    failure_threshold: int
    reset_timeout_ms: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "provider_id": self.provider_id,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "opened_at": self.opened_at,
            "last_failure_at": self.last_failure_at,
            "last_success_at": self.last_success_at,
            "total_failures": self.total_failures,
            "total_successes": self.total_successes,
            "failure_threshold": self.failure_threshold,
            "reset_timeout_ms": self.reset_timeout_ms,
        }
