"""FastAPI application factory with lifespan dependency management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from llm_failover import __version__
from llm_failover.api import dependencies
from llm_failover.api.middleware.cors import configure_cors
from llm_failover.api.middleware.error_handler import register_error_handlers
from llm_failover.api.routes import register_routes
from llm_failover.service import FailoverService


def create_app(service: FailoverService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Pre-built failover service. When None, the lifespan builds
            one from environment settings.

    Returns:
        A configured FastAPI application with lifespan management.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Look up at call time so tests can patch the dependency module
        await dependencies.init_dependencies(service)
        try:
            yield
        finally:
            await dependencies.shutdown_dependencies()

    app = FastAPI(
        title="LLM Failover",
        version=__version__,
        docs_url="/docs",
        lifespan=lifespan,
    )

    configure_cors(app)
    register_error_handlers(app)
    register_routes(app)

    return app
