"""Registro de adaptadores por nome de provedor."""

import httpx

from blinko.providers.base import ProviderAdapter
from blinko.providers.gemini import GeminiAdapter
from blinko.providers.ollama import OllamaAdapter
from blinko.providers.openai_compatible import OpenAICompatibleAdapter
from blinko.utils.errors import ConfigurationError

# Fornecedores que falam o protocolo OpenAI, com seus endpoints padrão
OPENAI_COMPATIBLE_ENDPOINTS = {
    "OpenAI": "https://api.openai.com/v1",
    "DeepSeek": "https://api.deepseek.com/v1",
    "OpenRouter": "https://openrouter.ai/api/v1",
    "Grok": "https://api.x.ai/v1",
    "Custom": "",
}


class ProviderRegistry:
    """Mapa nome do provedor -> adaptador (sem diferenciar maiúsculas)."""

    def __init__(self) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}

    def register(self, name: str, adapter: ProviderAdapter) -> None:
        self._adapters[name.strip().lower()] = adapter

    def get(self, name: str | None) -> ProviderAdapter:
        """
        Retorna o adaptador do provedor.

        Raises:
            ConfigurationError: Se nenhum provedor for informado ou se ele for desconhecido.
        """
        if not name or not name.strip():
            raise ConfigurationError()
        adapter = self._adapters.get(name.strip().lower())
        if adapter is None:
            raise ConfigurationError(
                f"Provedor de IA desconhecido: {name}",
                details={"available": self.names()},
            )
        return adapter

    def names(self) -> list[str]:
        return sorted(adapter.name for adapter in self._adapters.values())


def build_default_registry(transport: httpx.AsyncBaseTransport | None = None) -> ProviderRegistry:
    """Cria o registro com todos os fornecedores suportados."""
    registry = ProviderRegistry()
    registry.register("Ollama", OllamaAdapter(transport=transport))
    registry.register("Gemini", GeminiAdapter(transport=transport))
    for name, endpoint in OPENAI_COMPATIBLE_ENDPOINTS.items():
        registry.register(
            name,
            OpenAICompatibleAdapter(name=name, default_endpoint=endpoint, transport=transport),
        )
    return registry


provider_registry = build_default_registry()
