"""Time sources for circuit breakers and the retry loop.

All timestamps are milliseconds. Production code uses SystemClock; tests
use ManualClock so that reset timeouts and backoff delays can be exercised
without sleeping.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for injectable time sources."""

    def now_ms(self) -> float:
        """Return the current time in milliseconds."""
        ...

    async def sleep(self, delay_ms: float) -> None:
        """Suspend the caller for ``delay_ms`` milliseconds."""
        ...


class SystemClock:
    """Wall-clock time backed by ``time.time`` and ``asyncio.sleep``."""

    def now_ms(self) -> float:
        return time.time() * 1000.0

    async def sleep(self, delay_ms: float) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000.0)


class ManualClock:
    """Clock that only moves when told to.

    ``sleep`` advances the clock instead of waiting, and records every
    requested delay so tests can assert on backoff schedules.

    Usage:
        clock = ManualClock(start_ms=0)
        breaker = ProviderCircuitBreaker("openai", config, clock)
        clock.advance(60_000)
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self.sleeps: list[float] = []

    def now_ms(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> None:
        """Move the clock forward by ``delta_ms`` milliseconds."""
        if delta_ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += delta_ms

    def set(self, now_ms: float) -> None:
        """Jump to an absolute time."""
        self._now = float(now_ms)

    async def sleep(self, delay_ms: float) -> None:
        self.sleeps.append(delay_ms)
        self._now += max(0.0, delay_ms)
        # Yield so concurrent tasks interleave the way a real sleep would
        await asyncio.sleep(0)
