"""API response models for LLM Failover.

These Pydantic models serialize HealthMonitor records for the admin API.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str


class ProviderHealthResponse(BaseModel):
    """Circuit breaker status of one provider.

    Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(from_attributes=True)

    provider_id: str
    priority: int
    model_id: str
    state: Literal["closed", "open", "half_open"]
    consecutive_failures: int
    opened_at: float | None = None
    last_failure_at: float | None = None
    last_success_at: float | None = None
    total_failures: int = 0
    total_successes: int = 0
    time_until_retry_ms: float = 0.0


class CircuitListResponse(BaseModel):
    """Response model for the provider circuit list."""

    providers: list[ProviderHealthResponse]
    total: int


class ResetAllResponse(BaseModel):
    """Response model for resetting every circuit."""

    success: bool
    message: str
    reset_count: int
    providers: list[ProviderHealthResponse]


class HealthSummaryResponse(BaseModel):
    """Overall provider pool health."""

    status: Literal["healthy", "degraded", "unhealthy"]
    timestamp: str
    total_providers: int
    providers_closed: int
    providers_open: int
    providers_half_open: int
    providers: list[ProviderHealthResponse]
