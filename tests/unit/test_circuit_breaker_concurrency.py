"""Concurrency tests for provider circuit breakers.

Tests verify the Half-Open single-trial rule under OS threads and under
interleaved asyncio tasks.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

from llm_failover.circuit_breaker import ProviderCircuitBreaker
from llm_failover.circuit_breaker_config import CircuitBreakerConfig, CircuitState
from llm_failover.clock import ManualClock


def _half_open_ready_breaker() -> tuple[ProviderCircuitBreaker, ManualClock]:
    """Breaker whose reset timeout has just elapsed (still stored as OPEN)."""
    clock = ManualClock()
    breaker = ProviderCircuitBreaker(
        "openai", CircuitBreakerConfig(failure_threshold=2, reset_timeout_ms=1000), clock
    )
    breaker.record_failure()
    breaker.record_failure()
    clock.advance(1000)
    return breaker, clock


class TestSingleTrialThreads:
    """Many OS threads racing on the Open -> Half-Open boundary."""

    def test_exactly_one_thread_granted(self) -> None:
        breaker, _ = _half_open_ready_breaker()
        barrier = threading.Barrier(16)

        def attempt() -> bool:
            barrier.wait()
            return breaker.is_call_permitted()

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: attempt(), range(16)))

        assert results.count(True) == 1
        assert breaker.state is CircuitState.HALF_OPEN

    def test_concurrent_failures_count_exactly(self) -> None:
        clock = ManualClock()
        breaker = ProviderCircuitBreaker(
            "openai", CircuitBreakerConfig(failure_threshold=1000), clock
        )

        def fail_many() -> None:
            for _ in range(100):
                breaker.record_failure()

        threads = [threading.Thread(target=fail_many) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert breaker.consecutive_failures == 800
        assert breaker.snapshot().total_failures == 800


class TestSingleTrialAsyncio:
    """Interleaved asyncio tasks at the reset boundary."""

    async def test_two_concurrent_callers_one_true_one_false(self) -> None:
        breaker, _ = _half_open_ready_breaker()

        async def attempt() -> bool:
            await asyncio.sleep(0)
            return breaker.is_call_permitted()

        results = await asyncio.gather(attempt(), attempt())
        assert sorted(results) == [False, True]

    async def test_trial_outcome_unblocks_following_callers(self) -> None:
        breaker, _ = _half_open_ready_breaker()
        granted = asyncio.Event()

        async def trial() -> None:
            assert breaker.is_call_permitted()
            granted.set()
            await asyncio.sleep(0.01)
            breaker.record_success()

        async def late_caller() -> list[bool]:
            await granted.wait()
            seen = [breaker.is_call_permitted()]
            while breaker.state is not CircuitState.CLOSED:
                await asyncio.sleep(0.001)
            seen.append(breaker.is_call_permitted())
            return seen

        _, seen = await asyncio.gather(trial(), late_caller())
        assert seen == [False, True]
