"""Construction of the default SDK-backed provider adapters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .openai import OpenAIAdapter

if TYPE_CHECKING:
    from ..config import FailoverSettings

logger = logging.getLogger(__name__)

_ADAPTER_TYPES: dict[str, type[OpenAIAdapter] | type[AnthropicAdapter]] = {
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
}


def build_default_adapters(settings: FailoverSettings) -> dict[str, ProviderAdapter]:
    """Create SDK adapters for every enabled provider that has credentials.

    Providers without an API key, and provider ids with no built-in
    adapter, are skipped with a warning. Callers that need other
    providers pass their own adapters to FailoverService.

    Args:
        settings: Loaded failover settings.

    Returns:
        Mapping of provider id to adapter.
    """
    adapters: dict[str, ProviderAdapter] = {}
    for provider_id in settings.enabled_providers:
        adapter_type = _ADAPTER_TYPES.get(provider_id)
        if adapter_type is None:
            logger.warning("No built-in adapter for provider %s, skipping", provider_id)
            continue

        api_key = settings.api_key_for(provider_id)
        if not api_key:
            logger.warning(
                "%s_API_KEY not set, provider %s disabled", provider_id.upper(), provider_id
            )
            continue

        adapters[provider_id] = adapter_type(api_key=api_key, provider_id=provider_id)
        logger.info("Configured %s adapter (model=%s)", provider_id, settings.model_for(provider_id))
    return adapters
