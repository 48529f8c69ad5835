"""Dependency initialization and management for API singletons.

This module manages the module-level FailoverService singleton during
application lifespan (startup/shutdown).
"""

from __future__ import annotations

import logging

from llm_failover.service import FailoverService

logger = logging.getLogger(__name__)

# Module-level singleton
_service: FailoverService | None = None


def get_service_dep() -> FailoverService:
    """Get the FailoverService singleton.

    Returns:
        The initialized FailoverService instance.

    Raises:
        RuntimeError: If dependencies are not initialized.
    """
    if _service is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies() first.")
    return _service


async def init_dependencies(service: FailoverService | None = None) -> None:
    """Initialize the FailoverService singleton.

    This function is idempotent - calling it again keeps the existing
    service rather than creating a new one.

    Args:
        service: Pre-built service. Built from the environment if None.

    Raises:
        ValueError: If the environment configuration is invalid.
    """
    global _service

    if _service is not None:
        return

    _service = service or FailoverService.from_settings()
    logger.info(
        "Failover service ready with providers: %s",
        ", ".join(_service.registry.provider_ids) or "none",
    )


async def shutdown_dependencies() -> None:
    """Close and reset the FailoverService singleton.

    Safe to call multiple times - it's a no-op if already shut down
    or never initialized.
    """
    global _service

    if _service is not None:
        await _service.close()
        _service = None
