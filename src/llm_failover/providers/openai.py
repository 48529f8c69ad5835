"""OpenAI provider adapter.

Uses the official ``openai`` SDK. Structured output goes through the
JSON-schema response format; SDK exceptions are mapped onto transient
or fatal provider errors by status code.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import openai
from openai import AsyncOpenAI

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


class OpenAIAdapter(BaseProviderAdapter):
    """Adapter for OpenAI chat completion models."""

    def __init__(
        self,
        api_key: str | None = None,
        provider_id: str = "openai",
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: OpenAI API key. The SDK falls back to OPENAI_API_KEY.
            provider_id: Provider id reported in errors and logs.
            client: Pre-built SDK client (tests inject a mock here).
        """
        super().__init__(provider_id)
        # SDK-level retries are disabled; the orchestrator owns retry policy
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    def _translate_error(self, exc: Exception) -> ProviderError:
        if isinstance(exc, openai.APIConnectionError):
            # Includes APITimeoutError
            return TransientProviderError(str(exc), provider_id=self.provider_id, cause=exc)
        if isinstance(exc, openai.APIStatusError):
            if classify_status_code(exc.status_code) is FailureClassification.TRANSIENT:
                return TransientProviderError(
                    str(exc), provider_id=self.provider_id, cause=exc
                )
            return FatalProviderError(str(exc), provider_id=self.provider_id, cause=exc)
        return super()._translate_error(exc)

    @staticmethod
    def _messages(request: ProviderRequest) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if request.options.system:
            messages.append({"role": "system", "content": request.options.system})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    def _params(self, request: ProviderRequest, model_id: str, timeout_ms: int) -> dict[str, Any]:
        return {
            "model": model_id,
            "messages": self._messages(request),
            "max_tokens": request.max_tokens,
            "temperature": request.options.temperature,
            "timeout": timeout_ms / 1000,
            **request.options.extra,
        }

    async def generate_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                **self._params(request, model_id, timeout_ms)
            )
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e

        content = response.choices[0].message.content
        if not content:
            raise TransientProviderError(
                "OpenAI returned empty completion content", provider_id=self.provider_id
            )
        return content

    async def generate_object(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> dict[str, Any]:
        schema_name = request.schema.__name__ if request.schema else "object"
        params = self._params(request, model_id, timeout_ms)
        params["response_format"] = {
            "type": "json_schema",
            "json_schema": {"name": schema_name, "schema": request.json_schema()},
        }

        try:
            response = await self._client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e

        content = response.choices[0].message.content
        if not content:
            raise TransientProviderError(
                "OpenAI returned empty structured output", provider_id=self.provider_id
            )
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise TransientProviderError(
                f"OpenAI returned invalid JSON: {e}", provider_id=self.provider_id, cause=e
            ) from e
        if not isinstance(parsed, dict):
            raise TransientProviderError(
                f"OpenAI returned {type(parsed).__name__}, expected object",
                provider_id=self.provider_id,
            )
        return parsed

    async def stream_text(
        self, request: ProviderRequest, model_id: str, timeout_ms: int
    ) -> AsyncIterator[str]:
        stream = None
        try:
            stream = await self._client.chat.completions.create(
                **self._params(request, model_id, timeout_ms), stream=True
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e
        finally:
            if stream is not None:
                await stream.close()

    async def close(self) -> None:
        await self._client.close()
        logger.debug("OpenAI client closed for %s", self.provider_id)
