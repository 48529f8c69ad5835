"""Provider circuit breaker endpoints.

Endpoints:
- GET /circuits - List every provider's circuit state
- POST /circuits/reset - Reset every circuit
- GET /circuits/{provider_id} - Get one provider's circuit state
- POST /circuits/{provider_id}/reset - Reset one provider's circuit
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from llm_failover.api.dependencies import get_service_dep
from llm_failover.api.models.responses import (
    CircuitListResponse,
    ProviderHealthResponse,
    ResetAllResponse,
)
from llm_failover.errors import UnknownProviderError
from llm_failover.service import FailoverService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CircuitListResponse)
async def get_circuits(
    service: FailoverService = Depends(get_service_dep),
) -> dict[str, Any]:
    """List every provider's circuit state in priority order."""
    providers = [p.to_dict() for p in service.get_provider_health_status()]
    return {"providers": providers, "total": len(providers)}


@router.post("/reset", response_model=ResetAllResponse)
async def reset_all_circuits(
    service: FailoverService = Depends(get_service_dep),
) -> dict[str, Any]:
    """Reset every provider's circuit to closed.

    Idempotent: a second call reports ``reset_count`` 0 and the same states.
    """
    reset_count = service.reset_all_circuit_breakers()
    providers = [p.to_dict() for p in service.get_provider_health_status()]
    return {
        "success": True,
        "message": "Circuit breakers reset successfully",
        "reset_count": reset_count,
        "providers": providers,
    }


@router.get("/{provider_id}", response_model=ProviderHealthResponse)
async def get_circuit(
    provider_id: str,
    service: FailoverService = Depends(get_service_dep),
) -> dict[str, Any]:
    """Get one provider's circuit state.

    Raises:
        HTTPException: 404 if the provider is not registered.
    """
    try:
        return service.monitor.get_provider(provider_id).to_dict()
    except UnknownProviderError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/{provider_id}/reset", response_model=ProviderHealthResponse)
async def reset_circuit_endpoint(
    provider_id: str,
    service: FailoverService = Depends(get_service_dep),
) -> dict[str, Any]:
    """Reset one provider's circuit to closed.

    Returns:
        The provider's circuit state after the reset.

    Raises:
        HTTPException: 404 if the provider is not registered.
    """
    try:
        changed = service.reset_circuit_breaker(provider_id)
        record = service.monitor.get_provider(provider_id)
    except UnknownProviderError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    logger.info("Admin reset of %s (changed=%s)", provider_id, changed)
    return record.to_dict()
