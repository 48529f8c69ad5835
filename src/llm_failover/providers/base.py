"""Provider adapter abstraction for the failover orchestrator.

This module provides the adapter protocol the orchestrator calls, an
abstract base with shared error translation, and a scripted mock adapter
for tests and local development.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..errors import ProviderError, as_provider_error
from ..models import Capability, ProviderRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class ProviderAdapter(Protocol):
    """Protocol for the per-provider call into a hosted model.

    The orchestrator enforces ``timeout_ms`` as a hard deadline; adapters
    receive it so SDK clients can apply a matching request timeout.
    """

    provider_id: str

    async def generate_object(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> dict[str, Any]:
        """Generate a JSON object matching ``request.schema``."""
        ...

    async def generate_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> str:
        """Generate free text."""
        ...

    def stream_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> AsyncIterator[str]:
        """Return an async iterator of text chunks."""
        ...


class BaseProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses implement the three capability methods and may override
    ``_translate_error`` to map SDK exceptions precisely.
    """

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id

    @abstractmethod
    async def generate_object(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def generate_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> str: ...

    @abstractmethod
    def stream_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> AsyncIterator[str]: ...

    def _translate_error(self, exc: Exception) -> ProviderError:
        """Wrap an SDK exception in a Transient or Fatal provider error."""
        return as_provider_error(exc, self.provider_id)

    async def close(self) -> None:
        """Release SDK resources. No-op by default."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r})"


@dataclass
class StreamScript:
    """Scripted stream outcome for MockProviderAdapter.

    Attributes:
        chunks: Text chunks yielded in order.
        error: Raised after all chunks have been yielded, if set.
    """

    chunks: list[str] = field(default_factory=list)
    error: BaseException | None = None


class MockProviderAdapter(BaseProviderAdapter):
    """Mock provider adapter for testing.

    Returns scripted outcomes in order, one per call, then falls back to
    ``default``. An outcome that is an exception instance is raised instead
    of returned. Stream outcomes may be a string, a list of chunks or a
    StreamScript.

    Usage:
        adapter = MockProviderAdapter(
            "openai",
            outcomes=[TransientProviderError("503"), "recovered"],
        )
    """

    def __init__(
        self,
        provider_id: str = "mock",
        outcomes: Iterable[Any] | None = None,
        default: Any = None,
        delay_s: float = 0.0,
        chunk_delay_s: float = 0.0,
    ) -> None:
        """Initialize the mock adapter with scripted outcomes.

        Args:
            provider_id: Provider id reported by the adapter.
            outcomes: Per-call outcomes, consumed in order.
            default: Outcome once ``outcomes`` is exhausted.
            delay_s: Real delay before each call resolves.
            chunk_delay_s: Real delay between streamed chunks.
        """
        super().__init__(provider_id)
        self._outcomes = list(outcomes or [])
        self.default = default
        self.delay_s = delay_s
        self.chunk_delay_s = chunk_delay_s
        self.call_history: list[tuple[Capability, str]] = []
        self.streams_closed = 0
        self.streams_cancelled = 0

    def get_call_count(self, capability: Capability | None = None) -> int:
        """Return the number of adapter calls, optionally for one capability."""
        if capability is None:
            return len(self.call_history)
        return sum(1 for cap, _ in self.call_history if cap is capability)

    def _next_outcome(self, capability: Capability, model_id: str) -> Any:
        self.call_history.append((capability, model_id))
        if self._outcomes:
            return self._outcomes.pop(0)
        return self.default

    async def _resolve(self, capability: Capability, model_id: str) -> Any:
        outcome = self._next_outcome(capability, model_id)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def generate_object(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> dict[str, Any]:
        outcome = await self._resolve(Capability.GENERATE_OBJECT, model_id)
        return {} if outcome is None else outcome

    async def generate_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> str:
        outcome = await self._resolve(Capability.GENERATE_TEXT, model_id)
        return f"{self.provider_id} response" if outcome is None else outcome

    async def stream_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> AsyncIterator[str]:
        outcome = await self._resolve(Capability.STREAM_TEXT, model_id)
        if outcome is None:
            script = StreamScript(chunks=[f"{self.provider_id} ", "response"])
        elif isinstance(outcome, StreamScript):
            script = outcome
        elif isinstance(outcome, str):
            script = StreamScript(chunks=[outcome])
        else:
            script = StreamScript(chunks=list(outcome))

        try:
            for chunk in script.chunks:
                if self.chunk_delay_s:
                    await asyncio.sleep(self.chunk_delay_s)
                yield chunk
            if script.error is not None:
                raise script.error
        except asyncio.CancelledError:
            self.streams_cancelled += 1
            raise
        finally:
            self.streams_closed += 1
