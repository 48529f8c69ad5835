"""Caller-facing handle for a committed provider text stream."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from types import TracebackType
from typing import TYPE_CHECKING

from .errors import as_provider_error

if TYPE_CHECKING:
    from .circuit_breaker import ProviderCircuitBreaker

logger = logging.getLogger(__name__)


class TextStream:
    """Async iterator over the text chunks of one provider's stream.

    Returned once a provider has produced its first chunk, at which point
    that provider has already been credited with a success. Closing or
    cancelling the stream is caller-initiated and never counts against the
    provider. An error raised mid-stream is recorded as a provider failure
    and re-raised as a ProviderError; there is no failover after commit.

    Usage:
        result = await service.stream_text_with_failover("Tell me a story")
        async with result.value as stream:
            async for chunk in stream:
                print(chunk, end="")
    """

    def __init__(
        self,
        provider_id: str,
        model_id: str,
        iterator: AsyncIterator[str],
        breaker: ProviderCircuitBreaker,
        first_chunk: str | None = None,
    ) -> None:
        self._provider_id = provider_id
        self._model_id = model_id
        self._iterator = iterator
        self._breaker = breaker
        self._pending: list[str] = [] if first_chunk is None else [first_chunk]
        # A stream with no first chunk was already exhausted when opened
        self._finished = first_chunk is None
        self._closed = False

    @property
    def provider_id(self) -> str:
        """Provider serving this stream."""
        return self._provider_id

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> TextStream:
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        if self._pending:
            return self._pending.pop(0)
        if self._finished:
            raise StopAsyncIteration

        try:
            return await anext(self._iterator)
        except StopAsyncIteration:
            self._finished = True
            raise
        except asyncio.CancelledError:
            self._finished = True
            logger.info("Stream from %s cancelled by caller", self._provider_id)
            raise
        except Exception as e:
            self._finished = True
            error = as_provider_error(e, self._provider_id)
            self._breaker.record_failure(reason=f"stream interrupted: {error}")
            raise error from e

    async def aclose(self) -> None:
        """Stop the stream and close the provider iterator. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        aclose = getattr(self._iterator, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.debug("Stream from %s closed", self._provider_id)

    async def cancel(self) -> None:
        """Cancel the stream on behalf of the caller."""
        if not self._closed:
            logger.info("Stream from %s cancelled by caller", self._provider_id)
        await self.aclose()

    async def collect(self) -> str:
        """Consume the rest of the stream and return the joined text."""
        return "".join([chunk async for chunk in self])

    async def __aenter__(self) -> TextStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"TextStream(provider_id={self._provider_id!r}, closed={self._closed})"
