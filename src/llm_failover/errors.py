"""Exceptions and failure classification for provider failover.

This module defines the exception hierarchy raised by the orchestrator and
the rules used to decide whether a provider failure is worth retrying.

Hierarchy:
    FailoverError
    ├── ProviderError
    │   ├── TransientProviderError  (retryable, failover-eligible)
    │   └── FatalProviderError      (not retried on the same provider)
    ├── ConfigurationError
    │   ├── NoProvidersConfiguredError
    │   └── UnknownProviderError    (also a LookupError)
    └── AllProvidersExhaustedError
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .models import ProviderAttempt

logger = logging.getLogger(__name__)


class FailureClassification(Enum):
    """How a caught provider error is treated by the retry loop."""

    TRANSIENT = "transient"
    FATAL = "fatal"


class FailoverError(Exception):
    """Base exception for all provider failover errors."""

    pass


class ProviderError(FailoverError):
    """Base exception for errors raised by or on behalf of a provider.

    Attributes:
        provider_id: Provider that produced the error, when known.
        cause: Underlying SDK or transport exception, when there is one.
    """

    def __init__(
        self,
        message: str,
        provider_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.provider_id = provider_id
        self.cause = cause
        super().__init__(message)


class TransientProviderError(ProviderError):
    """Timeout, network error, rate limiting or 5xx from a provider."""

    pass


class FatalProviderError(ProviderError):
    """Bad credentials, malformed request or unsupported model."""

    pass


class ConfigurationError(FailoverError):
    """Setup problem; never retried or failed over."""

    pass


class NoProvidersConfiguredError(ConfigurationError):
    """Raised when a capability is invoked with an empty registry."""

    def __init__(self) -> None:
        super().__init__("No AI providers are configured")


class UnknownProviderError(ConfigurationError, LookupError):
    """Raised when a provider id is not registered."""

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Unknown provider: {provider_id}")


class AllProvidersExhaustedError(FailoverError):
    """Raised when every provider was circuit-open or failed all its retries.

    Attributes:
        attempts: One entry per configured provider, in candidate order.
    """

    def __init__(self, attempts: list[ProviderAttempt]) -> None:
        self.attempts = attempts
        summary = "; ".join(
            f"{attempt.provider_id}: {attempt.last_error}" for attempt in attempts
        )
        super().__init__(f"All providers exhausted ({summary})")

    @property
    def provider_ids(self) -> list[str]:
        """Provider ids in the order they were considered."""
        return [attempt.provider_id for attempt in self.attempts]


_TRANSIENT_STATUS_CODES = frozenset({408, 409, 425, 429})

# Lower-case substrings checked against the error message
_TRANSIENT_INDICATORS = (
    "rate limit",
    "quota",
    "timeout",
    "timed out",
    "overloaded",
    "connection",
    "network",
    "unavailable",
)

_FATAL_INDICATORS = (
    "unauthorized",
    "authentication",
    "api key",
    "permission",
    "invalid request",
    "content filter",
    "content policy",
    "not found",
    "unsupported model",
)


def _status_code_of(exc: BaseException) -> int | None:
    """Extract an HTTP status code from SDK or httpx exceptions."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    return None


def classify_status_code(status: int) -> FailureClassification:
    """Classify an HTTP status code returned by a provider."""
    if status in _TRANSIENT_STATUS_CODES or status >= 500:
        return FailureClassification.TRANSIENT
    return FailureClassification.FATAL


def classify_error(exc: BaseException) -> FailureClassification:
    """Decide whether a provider failure is transient or fatal.

    Explicit provider errors win, then exception types, then HTTP status
    codes, then message heuristics. Anything unrecognised is treated as
    transient so that it is retried and failed over.

    Args:
        exc: The exception raised by a provider adapter.

    Returns:
        The failure classification.
    """
    if isinstance(exc, TransientProviderError):
        return FailureClassification.TRANSIENT
    if isinstance(exc, FatalProviderError):
        return FailureClassification.FATAL
    if isinstance(exc, (TimeoutError, ConnectionError, httpx.TransportError)):
        return FailureClassification.TRANSIENT

    status = _status_code_of(exc)
    if status is not None and status >= 400:
        return classify_status_code(status)

    message = str(exc).lower()
    if any(indicator in message for indicator in _FATAL_INDICATORS):
        return FailureClassification.FATAL
    if any(indicator in message for indicator in _TRANSIENT_INDICATORS):
        return FailureClassification.TRANSIENT

    logger.debug("Unrecognised provider error %s treated as transient", type(exc).__name__)
    return FailureClassification.TRANSIENT


def as_provider_error(exc: BaseException, provider_id: str | None = None) -> ProviderError:
    """Wrap an arbitrary exception in the matching ProviderError subclass.

    ProviderErrors pass through unchanged (their provider id is filled in
    if missing); anything else is classified with ``classify_error``.
    """
    if isinstance(exc, ProviderError):
        if exc.provider_id is None:
            exc.provider_id = provider_id
        return exc
    if classify_error(exc) is FailureClassification.FATAL:
        return FatalProviderError(str(exc) or type(exc).__name__, provider_id=provider_id, cause=exc)
    return TransientProviderError(str(exc) or type(exc).__name__, provider_id=provider_id, cause=exc)
