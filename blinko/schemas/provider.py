"""Schemas de conexão e catálogo de modelos dos provedores."""

from pydantic import Field

from blinko.schemas.base import CamelModel


class ConnectionTestRequest(CamelModel):
    """Request de teste de conexão com um provedor."""

    ai_api_endpoint: str = Field(default="", description="Endpoint do provedor")
    provider: str = Field(..., min_length=1, description="Nome do provedor (ex.: Ollama)")
    ai_api_key: str | None = None


class FetchModelsRequest(CamelModel):
    """Request de listagem de modelos."""

    provider: str = Field(..., min_length=1)
    ai_api_endpoint: str = ""
    ai_api_key: str | None = None
    embedding_api_endpoint: str | None = None
    embedding_api_key: str | None = None
    rerank_use_eembbing_endpoint: bool = False


class ModelOption(CamelModel):
    """Modelo disponível no provedor."""

    label: str
    value: str


class ModelCatalog(CamelModel):
    """Catálogo normalizado de modelos."""

    ai_models: list[ModelOption] = Field(default_factory=list)
    embedding_models: list[ModelOption] = Field(default_factory=list)
    rerank_models: list[ModelOption] = Field(default_factory=list)
