"""Async HTTP client for the LLM Failover admin API."""

from __future__ import annotations

import json
from collections.abc import Container
from typing import Any

import httpx

from .errors import ClientError, NotFoundError, ServerError


class FailoverClient:
    """Async client wrapping the LLM Failover admin API.

    Usage::

        async with FailoverClient() as client:
            circuits = await client.list_circuits()
            await client.reset_circuit("openai")

    Args:
        base_url: Base URL of the admin API server.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8430",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> FailoverClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit the async context manager, closing the underlying HTTP client."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        accept_status: Container[int] = (),
        provider_id: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send an HTTP request and return the parsed JSON response.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: URL path relative to ``base_url``.
            accept_status: Error status codes whose body is returned anyway.
            provider_id: Provider the path refers to, attached to NotFoundError.
            **kwargs: Extra keyword arguments forwarded to ``httpx.AsyncClient.request``.

        Returns:
            Parsed JSON response as a dictionary.

        Raises:
            NotFoundError: If the server responds with 404.
            ServerError: If the server responds with a 5xx status code.
            ClientError: For any other non-2xx status code.
        """
        response = await self._client.request(method, path, **kwargs)

        if response.status_code >= 400 and response.status_code not in accept_status:
            detail = self._extract_detail(response)
            if response.status_code == 404:
                raise NotFoundError(message=detail, provider_id=provider_id)
            if response.status_code >= 500:
                raise ServerError(status_code=response.status_code, message=detail)
            raise ClientError(status_code=response.status_code, message=detail)

        result: dict[str, Any] = response.json()
        return result

    @staticmethod
    def _extract_detail(response: httpx.Response) -> str:
        """Extract the ``detail`` field from a JSON error body, else the raw text."""
        try:
            body = response.json()
        except json.JSONDecodeError:
            return response.text
        if isinstance(body, dict) and "detail" in body:
            return str(body["detail"])
        return response.text

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def live(self) -> dict[str, Any]:
        """Liveness probe."""
        return await self._request("GET", "/health/live")

    async def health(self) -> dict[str, Any]:
        """Get overall provider health.

        An unhealthy pool is reported with HTTP 503; its body is returned
        rather than raised so callers can inspect ``status``.

        Returns:
            Health summary with one record per provider.
        """
        return await self._request("GET", "/health", accept_status=(503,))

    async def list_circuits(self) -> dict[str, Any]:
        """List every provider's circuit state.

        Returns:
            Dictionary with ``providers`` and ``total``.
        """
        return await self._request("GET", "/circuits")

    async def get_circuit(self, provider_id: str) -> dict[str, Any]:
        """Get one provider's circuit state.

        Raises:
            NotFoundError: If the provider is not registered.
        """
        return await self._request("GET", f"/circuits/{provider_id}", provider_id=provider_id)

    async def reset_circuit(self, provider_id: str) -> dict[str, Any]:
        """Reset one provider's circuit to closed.

        Raises:
            NotFoundError: If the provider is not registered.
        """
        return await self._request(
            "POST", f"/circuits/{provider_id}/reset", provider_id=provider_id
        )

    async def reset_all(self) -> dict[str, Any]:
        """Reset every provider's circuit.

        Returns:
            Dictionary with ``success``, ``reset_count`` and ``providers``.
        """
        return await self._request("POST", "/circuits/reset")
