"""Anthropic provider adapter.

Uses the official ``anthropic`` SDK. Anthropic has no JSON-schema response
format, so structured output forces a single ``tool_use`` call whose input
schema is the requested object schema.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from ..errors import (
    FatalProviderError,
    FailureClassification,
    ProviderError,
    TransientProviderError,
    classify_status_code,
)
from ..models import ProviderRequest
from .base import BaseProviderAdapter

logger = logging.getLogger(__name__)


class AnthropicAdapter(BaseProviderAdapter):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        provider_id: str = "anthropic",
        client: AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Anthropic API key. The SDK falls back to ANTHROPIC_API_KEY.
            provider_id: Provider id reported in errors and logs.
            client: Pre-built SDK client (tests inject a mock here).
        """
        super().__init__(provider_id)
        self._client = client or AsyncAnthropic(api_key=api_key, max_retries=0)

    def _translate_error(self, exc: Exception) -> ProviderError:
        if isinstance(exc, anthropic.APIConnectionError):
            return TransientProviderError(str(exc), provider_id=self.provider_id, cause=exc)
        if isinstance(exc, anthropic.APIStatusError):
            if classify_status_code(exc.status_code) is FailureClassification.TRANSIENT:
                return TransientProviderError(
                    str(exc), provider_id=self.provider_id, cause=exc
                )
            return FatalProviderError(str(exc), provider_id=self.provider_id, cause=exc)
        return super()._translate_error(exc)

    def _params(self, request: ProviderRequest, model_id: str, timeout_ms: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": model_id,
            "max_tokens": request.max_tokens,
            "temperature": request.options.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
            "timeout": timeout_ms / 1000,
        }
        if request.options.system:
            params["system"] = request.options.system
        params.update(request.options.extra)
        return params

    async def generate_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> str:
        try:
            response = await self._client.messages.create(
                **self._params(request, model_id, timeout_ms)
            )
        except anthropic.AnthropicError as e:
            raise self._translate_error(e) from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise TransientProviderError(
                "Anthropic returned empty completion content", provider_id=self.provider_id
            )
        return text

    async def generate_object(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> dict[str, Any]:
        schema_name = request.schema.__name__ if request.schema else "object"
        tool_name = f"generate_{schema_name.lower()}"
        params = self._params(request, model_id, timeout_ms)
        params["tools"] = [
            {
                "name": tool_name,
                "description": f"Generate a structured {schema_name} response.",
                "input_schema": request.json_schema(),
            }
        ]
        params["tool_choice"] = {"type": "tool", "name": tool_name}

        try:
            response = await self._client.messages.create(**params)
        except anthropic.AnthropicError as e:
            raise self._translate_error(e) from e

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                return dict(block.input)

        raise TransientProviderError(
            "Anthropic did not return a tool_use block", provider_id=self.provider_id
        )

    async def stream_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> AsyncIterator[str]:
        stream = None
        try:
            stream = await self._client.messages.create(
                **self._params(request, model_id, timeout_ms), stream=True
            )
            async for event in stream:
                if event.type == "content_block_delta" and event.delta.type == "text_delta":
                    yield event.delta.text
        except anthropic.AnthropicError as e:
            raise self._translate_error(e) from e
        finally:
            if stream is not None:
                await stream.close()

    async def close(self) -> None:
        await self._client.close()
        logger.debug("Anthropic client closed for %s", self.provider_id)
