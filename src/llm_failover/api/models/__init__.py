"""API models package for LLM Failover."""

from .responses import (
    CircuitListResponse,
    ErrorResponse,
    HealthSummaryResponse,
    ProviderHealthResponse,
    ResetAllResponse,
)

__all__ = [
    "CircuitListResponse",
    "ErrorResponse",
    "HealthSummaryResponse",
    "ProviderHealthResponse",
    "ResetAllResponse",
]
