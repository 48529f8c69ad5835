"""Circuit breaker CLI commands for LLM failover.

Talks to a running admin API server through FailoverClient.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click
import httpx

from .client import ClientError, FailoverClient, NotFoundError

_DEFAULT_URL = "http://127.0.0.1:8430"

_url_option = click.option(
    "--url",
    envvar="LLM_FAILOVER_URL",
    default=_DEFAULT_URL,
    show_default=True,
    help="Admin API base URL",
)


@click.group()
def circuits() -> None:
    """Provider circuit breaker management commands."""
    pass


def _run(coro: Any) -> Any:
    """Run a client coroutine, turning HTTP failures into a CLI error exit."""
    try:
        return asyncio.run(coro)
    except NotFoundError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        if exc.provider_id:
            click.echo(
                f"Provider {exc.provider_id!r} is not registered; "
                "run 'llm-failover circuits status' to list providers.",
                err=True,
            )
        sys.exit(1)
    except ClientError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except httpx.HTTPError as exc:
        click.echo(f"Error: cannot reach server: {exc}", err=True)
        sys.exit(1)


@circuits.command(name="status")
@_url_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def circuits_status(url: str, as_json: bool) -> None:
    """Show every provider's circuit breaker status."""
    data = _run(_fetch_circuits(url))
    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        _print_circuit_status(data["providers"])


async def _fetch_circuits(url: str) -> dict[str, Any]:
    async with FailoverClient(base_url=url) as client:
        return await client.list_circuits()


def _print_circuit_status(providers: list[dict[str, Any]]) -> None:
    """Print circuit status output."""
    click.echo("\n" + "=" * 60)
    click.echo("Provider Circuit Status")
    click.echo("=" * 60)

    if not providers:
        click.echo("No providers configured.")
        return

    for provider in providers:
        state_icon = {
            "closed": "[OK]",
            "open": "[X]",
            "half_open": "[~]",
        }.get(provider["state"], "?")
        click.echo(
            f"  {state_icon} {provider['provider_id']} "
            f"(priority={provider['priority']}, model={provider['model_id']}): "
            f"{provider['state']} "
            f"(failures={provider['consecutive_failures']}, "
            f"total_failures={provider['total_failures']}, "
            f"total_successes={provider['total_successes']})"
        )
        if provider["state"] == "open":
            click.echo(f"    Retry in: {provider['time_until_retry_ms'] / 1000:.1f}s")


@circuits.command(name="health")
@_url_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def circuits_health(url: str, as_json: bool) -> None:
    """Show overall provider health."""
    data = _run(_fetch_health(url))
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    status_colors = {"healthy": "green", "degraded": "yellow", "unhealthy": "red"}
    click.echo("\n" + "=" * 60)
    click.echo("Provider Health")
    click.echo("=" * 60)
    click.secho(
        f"Status: {data['status'].upper()}",
        fg=status_colors.get(data["status"], "white"),
        bold=True,
    )
    click.echo(f"Total providers: {data['total_providers']}")
    click.echo(f"  Closed: {data['providers_closed']}")
    click.echo(f"  Open: {data['providers_open']}")
    click.echo(f"  Half-open: {data['providers_half_open']}")


async def _fetch_health(url: str) -> dict[str, Any]:
    async with FailoverClient(base_url=url) as client:
        return await client.health()


@circuits.command(name="reset")
@click.argument("provider_id")
@_url_option
@click.option("--force", is_flag=True, help="Force reset without confirmation")
def circuits_reset(provider_id: str, url: str, force: bool) -> None:
    """Reset a provider's circuit breaker.

    Use 'all' as PROVIDER_ID to reset every circuit.
    """
    if provider_id == "all":
        if not force:
            click.confirm("Reset ALL circuits?", abort=True)
        result = _run(_reset_all(url))
        click.echo(f"Reset {result['reset_count']} circuit(s).")
        return

    if not force:
        click.confirm(f"Reset circuit {provider_id}?", abort=True)
    result = _run(_reset_one(url, provider_id))
    click.echo(f"Reset circuit: {provider_id} (state={result['state']})")


async def _reset_all(url: str) -> dict[str, Any]:
    async with FailoverClient(base_url=url) as client:
        return await client.reset_all()


async def _reset_one(url: str, provider_id: str) -> dict[str, Any]:
    async with FailoverClient(base_url=url) as client:
        return await client.reset_circuit(provider_id)
