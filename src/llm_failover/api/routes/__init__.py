"""Route registration for FastAPI app.

Wires the health and circuits route modules to the FastAPI app with
their URL prefixes.
"""

from __future__ import annotations

from fastapi import FastAPI

from llm_failover.api.routes import circuits, health


def register_routes(app: FastAPI) -> None:
    """Register all route modules to the FastAPI app.

    This function is idempotent - calling it multiple times on the same app
    will not duplicate routes.

    Args:
        app: The FastAPI application instance.
    """
    # Guard against duplicate registration
    if getattr(app, "_routes_registered", False):
        return

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(circuits.router, prefix="/circuits", tags=["circuits"])

    app._routes_registered = True  # type: ignore[attr-defined]
