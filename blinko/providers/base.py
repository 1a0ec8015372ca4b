"""Interface comum dos adaptadores de provedores de IA."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from blinko.config.settings import settings
from blinko.schemas.config import AIConfig
from blinko.schemas.provider import FetchModelsRequest, ModelCatalog, ModelOption
from blinko.utils.errors import ConfigurationError, ConnectivityError, UpstreamError

logger = logging.getLogger(__name__)


def normalize_endpoint(url: str) -> str:
    """Remove espaços e barras finais para evitar '//' ao concatenar caminhos."""
    return (url or "").strip().rstrip("/")


def model_options(names: Iterable[str]) -> list[ModelOption]:
    """Converte nomes de modelos no formato {label, value} usado pelo front-end."""
    return [ModelOption(label=name, value=name) for name in names]


class ProviderAdapter(ABC):
    """
    Esconde as diferenças de cada fornecedor de IA atrás de um único contrato.

    Cada fornecedor expõe um esquema próprio para health check, catálogo de
    modelos e embeddings; o restante do sistema só conversa com esta classe.
    """

    name: str = ""
    default_endpoint: str = ""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Inicializa o adaptador.

        Args:
            transport: Transporte HTTP alternativo (usado nos testes).
            timeout: Timeout em segundos das chamadas HTTP.
        """
        self._transport = transport
        self._timeout = timeout or settings.provider_timeout_seconds

    def resolve_endpoint(self, endpoint: str | None) -> str:
        """Normaliza o endpoint informado, caindo para o padrão do fornecedor."""
        resolved = normalize_endpoint(endpoint or self.default_endpoint)
        if not resolved:
            raise ConfigurationError(f"Endpoint do provedor {self.name} não configurado")
        return resolved

    def headers(self, api_key: str | None) -> dict[str, str]:
        """Cabeçalhos de autenticação do fornecedor."""
        if api_key:
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    async def request_json(
        self,
        method: str,
        url: str,
        api_key: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Executa uma chamada HTTP e devolve o JSON da resposta.

        Raises:
            ConnectivityError: Se o backend estiver inacessível.
            UpstreamError: Se o backend responder com erro ou payload inválido.
        """
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.request(method, url, headers=self.headers(api_key), json=json)
        except httpx.TransportError as e:
            logger.warning(f"⚠️ {self.name} inacessível em {url}: {e}")
            raise ConnectivityError(self.name, details={"url": url, "reason": str(e)}) from e

        if not response.is_success:
            raise UpstreamError(
                self.name,
                f"HTTP {response.status_code}",
                details={"url": url, "body": response.text[:500]},
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(self.name, "resposta não é JSON", details={"url": url}) from e

    def parse(self, payload_model: type[BaseModel], data: Any) -> Any:
        """Valida o payload do fornecedor, convertendo falhas em UpstreamError."""
        try:
            return payload_model.model_validate(data)
        except PydanticValidationError as e:
            raise UpstreamError(self.name, "payload malformado", details={"errors": e.errors()}) from e

    @abstractmethod
    async def test_connection(self, endpoint: str | None, api_key: str | None = None) -> bool:
        """Retorna True se o backend responder com um sinal de saúde reconhecível."""

    @abstractmethod
    async def list_models(self, endpoint: str | None, api_key: str | None = None) -> list[ModelOption]:
        """Lista o catálogo de modelos do backend."""

    @abstractmethod
    async def embed(
        self,
        endpoint: str | None,
        text: str,
        model: str,
        api_key: str | None = None,
    ) -> list[float]:
        """Gera o embedding de um texto."""

    @abstractmethod
    def chat_model(self, config: AIConfig, model: str | None = None) -> BaseChatModel:
        """Cria o chat model LangChain ligado a este fornecedor."""

    async def fetch_catalog(self, request: FetchModelsRequest) -> ModelCatalog:
        """
        Monta o catálogo de modelos de chat, embedding e rerank.

        Se um endpoint de embeddings separado for informado, os modelos de
        embedding vêm dele; o rerank reaproveita essa lista quando
        rerank_use_eembbing_endpoint estiver ligado.
        """
        ai_models = await self.list_models(request.ai_api_endpoint, request.ai_api_key)
        embedding_models = ai_models
        rerank_models = ai_models

        if request.embedding_api_endpoint:
            embedding_models = await self.list_models(
                request.embedding_api_endpoint, request.embedding_api_key
            )
            if request.rerank_use_eembbing_endpoint:
                rerank_models = embedding_models

        return ModelCatalog(
            ai_models=ai_models,
            embedding_models=embedding_models,
            rerank_models=rerank_models,
        )

    def __repr__(self) -> str:
        """Representação string do adaptador."""
        return f"<{self.__class__.__name__}(name={self.name})>"
