"""Server runner module for the LLM Failover admin API.

Provides a run_server utility that configures and starts uvicorn
with appropriate defaults.
"""

from __future__ import annotations

from typing import Any

import uvicorn


def run_server(
    host: str = "127.0.0.1",
    port: int = 8430,
    log_level: str = "info",
    reload: bool = False,
    **kwargs: Any,
) -> None:
    """Run the LLM Failover admin API server.

    Provider configuration is read from the environment by the app's
    lifespan (see FailoverSettings.from_env).

    Args:
        host: The host to bind to. Defaults to '127.0.0.1'.
        port: The port to bind to. Defaults to 8430.
        log_level: The log level for uvicorn. Defaults to 'info'.
        reload: Whether to enable auto-reload. Defaults to False.
        **kwargs: Additional keyword arguments to forward to uvicorn.run.
    """
    uvicorn.run(
        "llm_failover.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=log_level,
        reload=reload,
        **kwargs,
    )
