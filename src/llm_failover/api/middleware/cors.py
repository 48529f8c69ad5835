"""CORS middleware configuration for FastAPI."""

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

_DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def resolve_cors_origins(cors_origins_env: str | None) -> list[str]:
    """Turn the LLM_FAILOVER_CORS_ORIGINS value into an origin list.

    - If not set: default localhost origins for development
    - If set to '*': wildcard access
    - Otherwise: comma-separated origins, whitespace trimmed, empties dropped
    """
    if cors_origins_env is None:
        return list(_DEFAULT_ORIGINS)
    if cors_origins_env == "*":
        return ["*"]
    return [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware on the FastAPI app.

    Args:
        app: The FastAPI application instance to configure
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=resolve_cors_origins(os.environ.get("LLM_FAILOVER_CORS_ORIGINS")),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
