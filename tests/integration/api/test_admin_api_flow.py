"""Admin API flow: a real app, lifespan and FailoverClient over ASGI."""

from __future__ import annotations

import httpx
from asgi_lifespan import LifespanManager

from llm_failover import FailoverService, ManualClock, MockProviderAdapter, TransientProviderError
from llm_failover.api import create_app, dependencies
from llm_failover.circuit_breaker import ProviderRegistry
from llm_failover.circuit_breaker_config import CircuitBreakerConfig
from llm_failover.client import FailoverClient
from llm_failover.models import ProviderConfig


async def test_outage_visible_and_resettable_through_admin_api() -> None:
    clock = ManualClock()
    registry = ProviderRegistry(
        [
            ProviderConfig("openai", priority=1, model_id="gpt-4o"),
            ProviderConfig("anthropic", priority=2, model_id="claude-3-opus-20240229"),
        ],
        CircuitBreakerConfig(failure_threshold=2, reset_timeout_ms=60_000),
        clock,
    )
    adapters = {
        "openai": MockProviderAdapter("openai", default=TransientProviderError("503")),
        "anthropic": MockProviderAdapter("anthropic"),
    }
    service = FailoverService(registry, adapters, clock=clock)
    dependencies._service = None
    app = create_app(service)

    async with LifespanManager(app) as manager:
        client = FailoverClient(
            base_url="http://test", transport=httpx.ASGITransport(app=manager.app)
        )
        async with client:
            for _ in range(2):
                await service.generate_text_with_failover("hello")

            health = await client.health()
            assert health["status"] == "degraded"

            circuit = await client.get_circuit("openai")
            assert circuit["state"] == "open"

            clock.advance(60_000)
            assert (await client.get_circuit("openai"))["state"] == "half_open"

            reset = await client.reset_all()
            assert reset["reset_count"] == 1
            assert (await client.health())["status"] == "healthy"
            assert (await client.reset_all())["reset_count"] == 0
