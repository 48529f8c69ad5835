"""LLM Failover admin REST API package.

This package provides a FastAPI-based REST API exposing provider health
and circuit breaker reset endpoints.
"""

from llm_failover.api.app import create_app

__all__ = ["create_app"]
