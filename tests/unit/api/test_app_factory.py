"""Tests for FastAPI application factory (create_app).

These tests verify the create_app() factory function, including:
- App metadata (title, version)
- Lifespan context manager for dependency init/shutdown
- CORS configuration
- Route registration
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from llm_failover import __version__
from llm_failover.api import create_app, dependencies
from llm_failover.service import FailoverService


class TestCreateAppMetadata:
    """Tests for app metadata configuration."""

    def test_create_app_returns_fastapi_instance(self) -> None:
        assert isinstance(create_app(), FastAPI)

    def test_title_and_version(self) -> None:
        app = create_app()
        assert app.title == "LLM Failover"
        assert app.version == __version__

    def test_routes_registered(self) -> None:
        paths = set(create_app().openapi()["paths"])
        assert {
            "/health",
            "/health/live",
            "/circuits",
            "/circuits/reset",
            "/circuits/{provider_id}",
            "/circuits/{provider_id}/reset",
        } <= paths


class TestLifespan:
    """Tests for dependency init/shutdown through the ASGI lifespan."""

    async def test_lifespan_installs_and_closes_service(
        self, failover_service: FailoverService
    ) -> None:
        app = create_app(failover_service)

        with patch.object(failover_service, "close", new_callable=AsyncMock) as mock_close:
            async with LifespanManager(app) as manager:
                assert dependencies.get_service_dep() is failover_service
                transport = ASGITransport(app=manager.app)
                async with AsyncClient(transport=transport, base_url="http://test") as client:
                    response = await client.get("/circuits")

            mock_close.assert_awaited_once()

        assert response.status_code == 200
        assert response.json()["total"] == 2
        with pytest.raises(RuntimeError, match="not initialized"):
            dependencies.get_service_dep()

    async def test_lifespan_builds_service_from_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.delenv("ENABLED_PROVIDERS", raising=False)
        monkeypatch.delenv("PRIMARY_PROVIDER", raising=False)
        app = create_app()

        async with LifespanManager(app) as manager:
            transport = ASGITransport(app=manager.app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/health")

        # No API keys, so no providers are registered
        assert response.status_code == 503
        assert response.json()["total_providers"] == 0

    async def test_init_dependencies_is_idempotent(
        self, failover_service: FailoverService
    ) -> None:
        await dependencies.init_dependencies(failover_service)
        await dependencies.init_dependencies(None)
        assert dependencies.get_service_dep() is failover_service

        await dependencies.shutdown_dependencies()
        await dependencies.shutdown_dependencies()


class TestCors:
    async def test_default_origin_allowed(
        self, failover_service: FailoverService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("LLM_FAILOVER_CORS_ORIGINS", raising=False)
        app = create_app(failover_service)

        async with LifespanManager(app) as manager:
            transport = ASGITransport(app=manager.app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get(
                    "/health/live", headers={"Origin": "http://localhost:5173"}
                )

        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
