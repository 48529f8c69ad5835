"""Execution orchestrator: priority selection, retry/backoff and failover.

For every capability call the orchestrator walks the registry's providers
in priority order, asks each provider's circuit breaker for permission,
invokes the provider adapter under a hard deadline and retries transient
failures with exponential backoff before failing over to the next provider.

The orchestrator holds no mutable state between calls; all shared state
lives in the ProviderRegistry's circuit breakers, so one instance can
serve any number of concurrent calls.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Mapping
from typing import Any

from .circuit_breaker import CircuitOpenError, ProviderCircuitBreaker, ProviderRegistry
from .circuit_breaker_config import DEFAULT_RETRY_POLICY, CircuitState, RetryPolicy
from .clock import Clock
from .errors import (
    AllProvidersExhaustedError,
    FailureClassification,
    NoProvidersConfiguredError,
    TransientProviderError,
    as_provider_error,
    classify_error,
)
from .models import Capability, ProviderAttempt, ProviderConfig, ProviderRequest, ProviderResult
from .providers.base import ProviderAdapter
from .streaming import TextStream

logger = logging.getLogger(__name__)


async def _first_chunk(iterator: AsyncIterator[str]) -> str:
    return await anext(iterator)


async def _close_iterator(iterator: AsyncIterator[str]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


class ExecutionOrchestrator:
    """Runs capability requests against providers with failover.

    Usage:
        orchestrator = ExecutionOrchestrator(registry, adapters, retry_policy)
        result = await orchestrator.execute(
            Capability.GENERATE_TEXT,
            ProviderRequest(Capability.GENERATE_TEXT, "Summarize this"),
        )
        print(result.provider_id, result.value)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: Mapping[str, ProviderAdapter],
        retry_policy: RetryPolicy | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            registry: Providers and their circuit breakers.
            adapters: Adapter per registered provider id.
            retry_policy: Local retry policy. Uses DEFAULT_RETRY_POLICY if None.
            clock: Time source for backoff sleeps. Uses the registry clock if None.
            rng: Random source for jitter.

        Raises:
            ValueError: If a registered provider has no adapter.
        """
        missing = [pid for pid in registry.provider_ids if pid not in adapters]
        if missing:
            raise ValueError(f"No adapter for provider(s): {', '.join(missing)}")

        self._registry = registry
        self._adapters = dict(adapters)
        self._retry_policy = retry_policy or DEFAULT_RETRY_POLICY
        self._clock = clock or registry.clock
        self._rng = rng or random.Random()

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def adapters(self) -> dict[str, ProviderAdapter]:
        return self._adapters

    async def execute(self, capability: Capability, request: ProviderRequest) -> ProviderResult[Any]:
        """Serve one capability request from the first provider that succeeds.

        Args:
            capability: Capability to invoke.
            request: Prompt, options and (for objects) the schema.

        Returns:
            ProviderResult whose value is a dict, a str or a TextStream,
            depending on the capability.

        Raises:
            NoProvidersConfiguredError: If the registry is empty.
            AllProvidersExhaustedError: If every provider was skipped or failed.
            ValueError: If ``request.capability`` does not match ``capability``.
        """
        if request.capability is not capability:
            raise ValueError(
                f"Request capability {request.capability.value} does not match {capability.value}"
            )

        candidates = self._registry.get_ordered_candidates()
        if not candidates:
            raise NoProvidersConfiguredError()

        failures: list[ProviderAttempt] = []
        for provider in candidates:
            breaker = self._registry.get_circuit_breaker(provider.id)
            now = self._clock.now_ms()

            if not breaker.is_call_permitted(now):
                wait_ms = breaker.get_time_until_retry(now)
                logger.info(
                    "Skipping provider %s for %s: circuit %s",
                    provider.id,
                    capability.value,
                    breaker.state.value,
                )
                failures.append(
                    ProviderAttempt(
                        provider_id=provider.id,
                        last_error=CircuitOpenError(provider.id, wait_ms, breaker.state),
                        skipped=True,
                    )
                )
                continue

            # A permission granted in HALF_OPEN is the single trial call
            holds_trial = breaker.state is CircuitState.HALF_OPEN
            try:
                outcome = await self._try_provider(provider, breaker, capability, request)
            except asyncio.CancelledError:
                if holds_trial:
                    breaker.release_trial()
                logger.info("Call to %s cancelled by caller", provider.id)
                raise

            if isinstance(outcome, ProviderAttempt):
                failures.append(outcome)
                continue

            value, attempts = outcome
            if failures:
                logger.info(
                    "%s served by %s after failing over from %s",
                    capability.value,
                    provider.id,
                    ", ".join(f.provider_id for f in failures),
                )
            return ProviderResult(
                value=value,
                provider_id=provider.id,
                model_id=provider.model_id,
                attempts=attempts,
                failed_over=failures,
            )

        error = AllProvidersExhaustedError(failures)
        logger.error("%s failed: %s", capability.value, error)
        raise error

    async def _try_provider(
        self,
        provider: ProviderConfig,
        breaker: ProviderCircuitBreaker,
        capability: Capability,
        request: ProviderRequest,
    ) -> tuple[Any, int] | ProviderAttempt:
        """Call one provider up to ``max_attempts`` times.

        Returns:
            ``(value, attempts)`` on success, or a ProviderAttempt describing
            the failure once the provider is given up on.
        """
        max_attempts = self._retry_policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            logger.debug(
                "Calling %s for %s (attempt %d/%d)",
                provider.id,
                capability.value,
                attempt,
                max_attempts,
            )
            try:
                value = await self._invoke(provider, breaker, capability, request)
            except Exception as e:
                error = as_provider_error(e, provider.id)
                classification = classify_error(error)

                if classification is FailureClassification.FATAL:
                    logger.warning("Fatal error from %s, failing over: %s", provider.id, error)
                    breaker.record_failure(reason=str(error))
                    return ProviderAttempt(provider.id, error, attempts=attempt)

                if attempt < max_attempts:
                    delay_ms = self._backoff_delay(attempt - 1)
                    logger.debug(
                        "Transient error from %s (%s), retrying in %.0fms",
                        provider.id,
                        error,
                        delay_ms,
                    )
                    await self._clock.sleep(delay_ms)
                    continue

                logger.warning(
                    "Provider %s exhausted %d attempts: %s", provider.id, attempt, error
                )
                breaker.record_failure(reason=str(error))
                return ProviderAttempt(provider.id, error, attempts=attempt)

            breaker.record_success()
            return value, attempt

        # max_attempts >= 1, so the loop always returns
        raise AssertionError("unreachable")

    async def _invoke(
        self,
        provider: ProviderConfig,
        breaker: ProviderCircuitBreaker,
        capability: Capability,
        request: ProviderRequest,
    ) -> Any:
        """Make one adapter call under the provider's hard deadline."""
        adapter = self._adapters[provider.id]
        timeout_ms = provider.call_timeout_ms
        timeout_s = timeout_ms / 1000

        if capability is Capability.STREAM_TEXT:
            return await self._open_stream(adapter, provider, breaker, request)

        if capability is Capability.GENERATE_OBJECT:
            call = adapter.generate_object(request, provider.model_id, timeout_ms)
        else:
            call = adapter.generate_text(request, provider.model_id, timeout_ms)

        try:
            return await asyncio.wait_for(call, timeout=timeout_s)
        except TimeoutError as e:
            raise TransientProviderError(
                f"{provider.id} timed out after {timeout_ms}ms",
                provider_id=provider.id,
                cause=e,
            ) from e

    async def _open_stream(
        self,
        adapter: ProviderAdapter,
        provider: ProviderConfig,
        breaker: ProviderCircuitBreaker,
        request: ProviderRequest,
    ) -> TextStream:
        """Open a provider stream and wait for its first chunk.

        Errors before the first chunk go through the normal retry path; once
        a chunk arrives the provider is committed and a TextStream returned.
        """
        timeout_ms = provider.call_timeout_ms
        iterator = adapter.stream_text(request, provider.model_id, timeout_ms)
        try:
            first = await asyncio.wait_for(_first_chunk(iterator), timeout=timeout_ms / 1000)
        except StopAsyncIteration:
            return TextStream(provider.id, provider.model_id, iterator, breaker, first_chunk=None)
        except TimeoutError as e:
            await _close_iterator(iterator)
            raise TransientProviderError(
                f"{provider.id} produced no output within {timeout_ms}ms",
                provider_id=provider.id,
                cause=e,
            ) from e
        except BaseException:
            await _close_iterator(iterator)
            raise
        return TextStream(provider.id, provider.model_id, iterator, breaker, first_chunk=first)

    def _backoff_delay(self, retry_index: int) -> float:
        """Return the jittered delay in ms before retry ``retry_index``."""
        delay = self._retry_policy.delay_for(retry_index)
        jitter = self._retry_policy.jitter
        if jitter:
            delay *= 1 + self._rng.uniform(-jitter, jitter)
        return min(max(0.0, delay), float(self._retry_policy.max_delay_ms))

