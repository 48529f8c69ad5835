"""Provider adapters: the per-provider call into a hosted model."""

from .anthropic import AnthropicAdapter
from .base import BaseProviderAdapter, MockProviderAdapter, ProviderAdapter, StreamScript
from .factory import build_default_adapters
from .openai import OpenAIAdapter

__all__ = [
    "AnthropicAdapter",
    "BaseProviderAdapter",
    "MockProviderAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "StreamScript",
    "build_default_adapters",
]
