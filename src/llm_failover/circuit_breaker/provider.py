"""Provider-level circuit breaker implementation.

Stops calls to a provider after a run of consecutive failures, lets a
single trial call through once the reset timeout has elapsed, and closes
again when that trial succeeds.
"""

from __future__ import annotations

import logging
import threading

from ..circuit_breaker_config import DEFAULT_CONFIG, CircuitBreakerConfig, CircuitState
from ..clock import Clock, SystemClock
from ..models import CircuitSnapshot

logger = logging.getLogger(__name__)


class ProviderCircuitBreaker:
    """Circuit breaker guarding one provider.

    State machine:
        CLOSED --(failures >= threshold)--> OPEN
        OPEN --(elapsed >= reset timeout)--> HALF_OPEN
        HALF_OPEN --(success)--> CLOSED
        HALF_OPEN --(failure)--> OPEN (timer restarts)

    The Open -> Half-Open transition is lazy: it is evaluated whenever the
    breaker is consulted, against the injected clock. Only one trial call
    is granted per Half-Open window.

    Every check-then-mutate sequence runs under a per-breaker
    ``threading.Lock``. No lock is held across an await, so the breaker is
    safe for both asyncio tasks and OS threads.

    Usage:
        breaker = ProviderCircuitBreaker("openai", config, clock)

        if breaker.is_call_permitted():
            try:
                result = await call_provider()
                breaker.record_success()
            except Exception as e:
                breaker.record_failure(reason=str(e))

    Attributes:
        provider_id: Provider guarded by this breaker.
        config: Threshold and reset timeout.
        state: Current circuit state.
    """

    def __init__(
        self,
        provider_id: str,
        config: CircuitBreakerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the circuit breaker.

        Args:
            provider_id: Identifier of the guarded provider.
            config: Configuration settings. Uses DEFAULT_CONFIG if None.
            clock: Time source. Uses SystemClock if None.
        """
        self._provider_id = provider_id
        self._config = config or DEFAULT_CONFIG
        self._clock = clock or SystemClock()

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False
        self._last_failure_at: float | None = None
        self._last_success_at: float | None = None
        self._total_failures = 0
        self._total_successes = 0

        self._lock = threading.Lock()

    @property
    def provider_id(self) -> str:
        """Return the guarded provider id."""
        return self._provider_id

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        """Return the stored circuit state (no lazy transition)."""
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def opened_at(self) -> float | None:
        return self._opened_at

    @property
    def is_open(self) -> bool:
        """Check if circuit is currently open (blocking requests)."""
        return self._state == CircuitState.OPEN

    def _now(self, now: float | None) -> float:
        return self._clock.now_ms() if now is None else now

    def is_call_permitted(self, now: float | None = None) -> bool:
        """Check whether a call may go to the provider.

        CLOSED always permits. OPEN permits (and moves to HALF_OPEN) only
        once the reset timeout has elapsed. HALF_OPEN permits only the
        first caller; everyone else is blocked until the trial resolves.

        Args:
            now: Current time in ms. Read from the clock if None.

        Returns:
            True if the caller may invoke the provider.
        """
        now = self._now(now)
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return True

            self._apply_lazy_recovery(now)
            if self._state == CircuitState.OPEN:
                return False

            # HALF_OPEN: grant exactly one trial
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            logger.debug("Circuit %s granted trial call", self._provider_id)
            return True

    def _apply_lazy_recovery(self, now: float) -> None:
        """Move OPEN to HALF_OPEN once the reset timeout has elapsed. Caller holds the lock."""
        if self._state == CircuitState.OPEN and self._should_attempt_recovery(now):
            self._transition_to_half_open()

    def _should_attempt_recovery(self, now: float) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self._opened_at is None:
            return True
        return now - self._opened_at >= self._config.reset_timeout_ms

    def get_time_until_retry(self, now: float | None = None) -> float:
        """Get milliseconds until the circuit can attempt recovery."""
        now = self._now(now)
        with self._lock:
            if self._state != CircuitState.OPEN or self._opened_at is None:
                return 0.0
            remaining = self._config.reset_timeout_ms - (now - self._opened_at)
            return max(0.0, remaining)

    def record_success(self, now: float | None = None) -> bool:
        """Record a success; always leaves the circuit CLOSED.

        Returns:
            True if the circuit transitioned to CLOSED, False if it already was.
        """
        now = self._now(now)
        with self._lock:
            self._total_successes += 1
            self._last_success_at = now
            was_closed = self._state == CircuitState.CLOSED

            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            self._opened_at = None
            self._trial_in_flight = False

            if not was_closed:
                logger.info("Circuit %s CLOSED after successful recovery", self._provider_id)
            return not was_closed

    def record_failure(self, now: float | None = None, reason: str = "") -> bool:
        """Record a failure and potentially open the circuit.

        A failure while HALF_OPEN re-opens the circuit regardless of the
        threshold and restarts the reset timer.

        Args:
            now: Current time in ms. Read from the clock if None.
            reason: Human-readable failure reason for the log.

        Returns:
            True if circuit transitioned to OPEN state, False otherwise.
        """
        now = self._now(now)
        with self._lock:
            self._consecutive_failures += 1
            self._total_failures += 1
            self._last_failure_at = now

            logger.warning(
                "Circuit %s failure %d/%d: %s",
                self._provider_id,
                self._consecutive_failures,
                self._config.failure_threshold,
                reason,
            )

            if self._state == CircuitState.HALF_OPEN:
                self._transition_to_open(now, reason, from_half_open=True)
                return True

            if self._state == CircuitState.CLOSED:
                if self._consecutive_failures >= self._config.failure_threshold:
                    self._transition_to_open(now, reason)
                    return True

            return False

    def release_trial(self) -> None:
        """Give back a granted trial without recording an outcome.

        Used when the caller cancels a trial call, so the next caller can
        make the trial instead.
        """
        with self._lock:
            if self._state == CircuitState.HALF_OPEN and self._trial_in_flight:
                self._trial_in_flight = False
                logger.debug("Circuit %s trial released", self._provider_id)

    def reset(self) -> bool:
        """Manually reset the circuit to closed state.

        This is typically used for administrative intervention.

        Returns:
            True if the circuit was not already closed.
        """
        with self._lock:
            changed = self._state != CircuitState.CLOSED
            self._state = CircuitState.CLOSED
            self._consecutive_failures = 0
            self._opened_at = None
            self._trial_in_flight = False

        if changed:
            logger.info("Circuit %s manually reset to CLOSED", self._provider_id)
        return changed

    def snapshot(self, now: float | None = None) -> CircuitSnapshot:
        """Return a consistent view of the breaker after lazy evaluation."""
        now = self._now(now)
        with self._lock:
            self._apply_lazy_recovery(now)
            return CircuitSnapshot(
                provider_id=self._provider_id,
                state=self._state,
                consecutive_failures=self._consecutive_failures,
                opened_at=self._opened_at,
                last_failure_at=self._last_failure_at,
                last_success_at=self._last_success_at,
                total_failures=self._total_failures,
                total_successes=self._total_successes,
                failure_threshold=self._config.failure_threshold,
                reset_timeout_ms=self._config.reset_timeout_ms,
            )

    def _transition_to_open(
        self,
        now: float,
        reason: str,
        from_half_open: bool = False,
    ) -> None:
        """Transition circuit to OPEN state. Caller holds the lock."""
        self._state = CircuitState.OPEN
        self._opened_at = now
        self._trial_in_flight = False

        logger.warning(
            "Circuit %s OPENED%s: %s (failures=%d)",
            self._provider_id,
            " after failed trial" if from_half_open else "",
            reason,
            self._consecutive_failures,
        )

    def _transition_to_half_open(self) -> None:
        """Transition circuit to HALF_OPEN state. Caller holds the lock."""
        self._state = CircuitState.HALF_OPEN
        self._trial_in_flight = False
        logger.info("Circuit %s entering HALF_OPEN for recovery test", self._provider_id)

    def __repr__(self) -> str:
        return (
            f"ProviderCircuitBreaker({self._provider_id!r}, state={self._state.value}, "
            f"failures={self._consecutive_failures})"
        )
