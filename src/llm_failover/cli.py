"""CLI for LLM failover.

Provides the admin server entry point and circuit management commands.
"""

from __future__ import annotations

import logging

import click

from .cli_circuits import circuits

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """LLM Failover - AI provider failover with circuit breakers."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


cli.add_command(circuits)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", default=8430, type=int, help="Port to bind to (default: 8430)")
@click.option("--reload", is_flag=True, help="Enable auto-reload on code changes")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error", "critical"], case_sensitive=False),
    default="info",
    help="Logging level (default: info)",
)
def serve(host: str, port: int, reload: bool, log_level: str) -> None:
    """Start the admin API server.

    Providers are configured from the environment (PRIMARY_PROVIDER,
    OPENAI_API_KEY, CIRCUIT_BREAKER_THRESHOLD, ...).
    """
    run_server(host=host, port=port, reload=reload, log_level=log_level)


def run_server(host: str, port: int, reload: bool, log_level: str) -> None:
    """Run the API server.

    Delegates to the real API server implementation in api.serve.
    """
    from llm_failover.api.serve import run_server as _run_api_server

    logger.info("Starting admin API on %s:%d", host, port)
    _run_api_server(host=host, port=port, reload=reload, log_level=log_level)


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
