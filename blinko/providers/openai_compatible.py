"""Adaptador para APIs compatíveis com OpenAI (OpenAI, DeepSeek, OpenRouter, ...)."""

import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from blinko.providers.base import ProviderAdapter, model_options
from blinko.schemas.config import AIConfig
from blinko.schemas.provider import ModelOption
from blinko.utils.errors import ConfigurationError, UpstreamError


class _OpenAIModel(BaseModel):
    id: str


class _OpenAIModelList(BaseModel):
    data: list[_OpenAIModel]


class _OpenAIEmbeddingItem(BaseModel):
    embedding: list[float]


class _OpenAIEmbeddingList(BaseModel):
    data: list[_OpenAIEmbeddingItem]


class OpenAICompatibleAdapter(ProviderAdapter):
    """Qualquer backend que implemente /models e /embeddings no formato OpenAI."""

    def __init__(
        self,
        name: str = "OpenAI",
        default_endpoint: str = "https://api.openai.com/v1",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(transport=transport, timeout=timeout)
        self.name = name
        self.default_endpoint = default_endpoint

    async def test_connection(self, endpoint: str | None, api_key: str | None = None) -> bool:
        base = self.resolve_endpoint(endpoint)
        data = await self.request_json("GET", f"{base}/models", api_key=api_key)
        self.parse(_OpenAIModelList, data)
        return True

    async def list_models(self, endpoint: str | None, api_key: str | None = None) -> list[ModelOption]:
        base = self.resolve_endpoint(endpoint)
        data = await self.request_json("GET", f"{base}/models", api_key=api_key)
        models = self.parse(_OpenAIModelList, data)
        return model_options(model.id for model in models.data)

    async def embed(
        self,
        endpoint: str | None,
        text: str,
        model: str,
        api_key: str | None = None,
    ) -> list[float]:
        base = self.resolve_endpoint(endpoint)
        data = await self.request_json(
            "POST",
            f"{base}/embeddings",
            api_key=api_key,
            json={"model": model, "input": text},
        )
        result = self.parse(_OpenAIEmbeddingList, data)
        if not result.data or not result.data[0].embedding:
            raise UpstreamError(self.name, "embedding vazio")
        return result.data[0].embedding

    def chat_model(self, config: AIConfig, model: str | None = None) -> BaseChatModel:
        model_name = model or config.ai_model
        if not model_name:
            raise ConfigurationError("Nenhum modelo de IA configurado")
        return ChatOpenAI(
            model=model_name,
            # Servidores locais compatíveis costumam aceitar qualquer key
            api_key=config.ai_api_key or "EMPTY",
            base_url=self.resolve_endpoint(config.ai_api_endpoint),
            temperature=0.7,
            timeout=self._timeout,
        )
