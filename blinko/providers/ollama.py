"""Adaptador do Ollama."""

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_ollama import ChatOllama
from pydantic import BaseModel, Field

from blinko.providers.base import ProviderAdapter, model_options
from blinko.schemas.config import AIConfig
from blinko.schemas.provider import FetchModelsRequest, ModelCatalog, ModelOption
from blinko.utils.errors import ConfigurationError, UpstreamError


class _OllamaVersion(BaseModel):
    version: str = Field(..., min_length=1)


class _OllamaModel(BaseModel):
    name: str


class _OllamaTags(BaseModel):
    models: list[_OllamaModel]


class _OllamaEmbedding(BaseModel):
    embedding: list[float]


class OllamaAdapter(ProviderAdapter):
    """Ollama local: /api/version, /api/tags e /api/embeddings."""

    name = "Ollama"
    default_endpoint = "http://localhost:11434"

    def headers(self, api_key: str | None) -> dict[str, str]:
        # Ollama não usa autenticação
        return {}

    async def test_connection(self, endpoint: str | None, api_key: str | None = None) -> bool:
        base = self.resolve_endpoint(endpoint)
        data = await self.request_json("GET", f"{base}/api/version")
        self.parse(_OllamaVersion, data)
        return True

    async def list_models(self, endpoint: str | None, api_key: str | None = None) -> list[ModelOption]:
        base = self.resolve_endpoint(endpoint)
        data = await self.request_json("GET", f"{base}/api/tags")
        tags = self.parse(_OllamaTags, data)
        return model_options(model.name for model in tags.models)

    async def fetch_catalog(self, request: FetchModelsRequest) -> ModelCatalog:
        # O Ollama serve chat, embedding e rerank pelo mesmo catálogo
        models = await self.list_models(request.ai_api_endpoint)
        return ModelCatalog(ai_models=models, embedding_models=models, rerank_models=models)

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
            f"{base}/api/embeddings",
            json={"model": model, "prompt": text},
        )
        result = self.parse(_OllamaEmbedding, data)
        if not result.embedding:
            raise UpstreamError(self.name, "embedding vazio")
        return result.embedding

    def chat_model(self, config: AIConfig, model: str | None = None) -> BaseChatModel:
        model_name = model or config.ai_model
        if not model_name:
            raise ConfigurationError("Nenhum modelo de IA configurado")
        return ChatOllama(
            model=model_name,
            base_url=self.resolve_endpoint(config.ai_api_endpoint),
            temperature=0.7,
        )
