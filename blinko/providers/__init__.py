"""Adaptadores de provedores de IA."""

from .base import ProviderAdapter, normalize_endpoint
from .gemini import GeminiAdapter
from .ollama import OllamaAdapter
from .openai_compatible import OpenAICompatibleAdapter
from .registry import ProviderRegistry, build_default_registry, provider_registry

__all__ = [
    "ProviderAdapter",
    "normalize_endpoint",
    "OllamaAdapter",
    "OpenAICompatibleAdapter",
    "GeminiAdapter",
    "ProviderRegistry",
    "build_default_registry",
    "provider_registry",
]
