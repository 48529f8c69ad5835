"""Environment-driven configuration for provider failover.

Reads the process environment (or an explicit mapping in tests) into a
frozen FailoverSettings, then derives the provider configs, breaker config
and retry policy the rest of the package consumes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .circuit_breaker_config import CircuitBreakerConfig, RetryPolicy
from .models import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "anthropic": "claude-3-opus-20240229",
}

DEFAULT_CALL_TIMEOUT_MS = 60_000


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_str(environ: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


@dataclass(frozen=True)
class FailoverSettings:
    """Process-wide failover settings.

    Attributes:
        primary_provider: Provider given priority 1.
        enabled_providers: Provider ids to register, in fallback order.
        failure_threshold: Consecutive failures before a circuit opens.
        reset_timeout_ms: Time an open circuit waits before a trial call.
        max_retries: Local retries per provider before failing over.
        retry_delay_ms: Base backoff delay.
        backoff_multiplier: Exponential backoff factor.
        max_delay_ms: Cap on a single backoff delay. When None, the larger of
            30s and ``retry_delay_ms``.
        jitter: Fractional jitter applied to backoff delays.
        models: Model id per provider.
        timeouts_ms: Per-call deadline per provider.
        api_keys: Credentials per provider (None when unset).
    """

    primary_provider: str = "openai"
    enabled_providers: tuple[str, ...] = ("openai", "anthropic")
    failure_threshold: int = 5
    reset_timeout_ms: int = 60_000
    max_retries: int = 3
    retry_delay_ms: int = 1000
    backoff_multiplier: float = 2.0
    max_delay_ms: int | None = None
    jitter: float = 0.0
    models: Mapping[str, str] | None = None
    timeouts_ms: Mapping[str, int] | None = None
    api_keys: Mapping[str, str | None] | None = None

    def __post_init__(self) -> None:
        if self.primary_provider not in self.enabled_providers:
            raise ValueError(
                f"PRIMARY_PROVIDER {self.primary_provider!r} is not in ENABLED_PROVIDERS "
                f"({', '.join(self.enabled_providers) or 'empty'})"
            )
        # Validate eagerly so a bad environment fails at startup
        self.circuit_breaker_config()
        self.retry_policy()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FailoverSettings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Validated settings.

        Raises:
            ValueError: If a variable is malformed or out of range.
        """
        env = os.environ if environ is None else environ

        enabled_raw = _get_str(env, "ENABLED_PROVIDERS", "openai,anthropic") or ""
        enabled = tuple(p.strip() for p in enabled_raw.split(",") if p.strip())
        if len(set(enabled)) != len(enabled):
            raise ValueError(f"ENABLED_PROVIDERS contains duplicates: {enabled_raw!r}")

        primary = _get_str(env, "PRIMARY_PROVIDER", "openai") or "openai"

        models: dict[str, str] = {}
        timeouts: dict[str, int] = {}
        api_keys: dict[str, str | None] = {}
        for provider_id in enabled:
            prefix = provider_id.upper()
            model = _get_str(env, f"{prefix}_MODEL", DEFAULT_MODELS.get(provider_id))
            if model is None:
                raise ValueError(f"{prefix}_MODEL must be set for provider {provider_id!r}")
            models[provider_id] = model
            timeouts[provider_id] = _get_int(env, f"{prefix}_TIMEOUT", DEFAULT_CALL_TIMEOUT_MS)
            api_keys[provider_id] = _get_str(env, f"{prefix}_API_KEY")

        # Unset cap follows the base delay; an explicit cap below it is an error
        max_delay_ms = (
            _get_int(env, "RETRY_MAX_DELAY_MS", 0)
            if _get_str(env, "RETRY_MAX_DELAY_MS") is not None
            else None
        )

        settings = cls(
            primary_provider=primary,
            enabled_providers=enabled,
            failure_threshold=_get_int(env, "CIRCUIT_BREAKER_THRESHOLD", 5),
            reset_timeout_ms=_get_int(env, "CIRCUIT_BREAKER_RESET_TIMEOUT", 60_000),
            max_retries=_get_int(env, "MAX_RETRIES", 3),
            retry_delay_ms=_get_int(env, "RETRY_DELAY_MS", 1000),
            backoff_multiplier=_get_float(env, "RETRY_BACKOFF_MULTIPLIER", 2.0),
            max_delay_ms=max_delay_ms,
            jitter=_get_float(env, "RETRY_JITTER", 0.0),
            models=models,
            timeouts_ms=timeouts,
            api_keys=api_keys,
        )
        logger.debug(
            "Loaded failover settings: primary=%s providers=%s threshold=%d",
            settings.primary_provider,
            ",".join(settings.enabled_providers),
            settings.failure_threshold,
        )
        return settings

    def model_for(self, provider_id: str) -> str:
        if self.models and provider_id in self.models:
            return self.models[provider_id]
        try:
            return DEFAULT_MODELS[provider_id]
        except KeyError:
            raise ValueError(f"No model configured for provider {provider_id!r}") from None

    def timeout_for(self, provider_id: str) -> int:
        if self.timeouts_ms and provider_id in self.timeouts_ms:
            return self.timeouts_ms[provider_id]
        return DEFAULT_CALL_TIMEOUT_MS

    def api_key_for(self, provider_id: str) -> str | None:
        if self.api_keys:
            return self.api_keys.get(provider_id)
        return None

    def provider_configs(self) -> list[ProviderConfig]:
        """Return provider configs with the primary provider first.

        The primary provider gets priority 1 and the remaining enabled
        providers follow in ``enabled_providers`` order.
        """
        ordered = [self.primary_provider] + [
            p for p in self.enabled_providers if p != self.primary_provider
        ]
        return [
            ProviderConfig(
                id=provider_id,
                priority=index + 1,
                model_id=self.model_for(provider_id),
                call_timeout_ms=self.timeout_for(provider_id),
            )
            for index, provider_id in enumerate(ordered)
        ]

    def circuit_breaker_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            reset_timeout_ms=self.reset_timeout_ms,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.retry_delay_ms,
            backoff_multiplier=self.backoff_multiplier,
            max_delay_ms=self.max_delay_ms,
            jitter=self.jitter,
        )
