"""Health check router for liveness and provider pool health."""

from typing import Any

from fastapi import APIRouter, Depends, Response

from llm_failover.api.dependencies import get_service_dep
from llm_failover.api.models.responses import HealthSummaryResponse
from llm_failover.health import HealthStatus
from llm_failover.service import FailoverService

router = APIRouter()


@router.get("/live")
def get_live() -> dict[str, str]:
    """Liveness probe; does not touch provider state."""
    return {"status": "alive"}


@router.get("", response_model=HealthSummaryResponse)
def get_health(
    response: Response,
    service: FailoverService = Depends(get_service_dep),
) -> dict[str, Any]:
    """Return overall provider health with one record per provider.

    Status code is 200 for healthy/degraded, 503 for unhealthy (no closed
    circuit, or no providers configured).
    """
    summary = service.get_health_summary()
    if summary.status is HealthStatus.UNHEALTHY:
        response.status_code = 503
    return summary.to_dict()
