"""Schema da configuração global de IA."""

from pydantic import Field

from blinko.schemas.base import CamelModel


class AIConfig(CamelModel):
    """
    Configuração de IA persistida na tabela de configs.

    Lida a cada chamada; nunca mantida em cache entre requisições para que
    alterações feitas nas configurações valham imediatamente.
    """

    provider: str = Field(default="", alias="aiModelProvider")
    ai_api_endpoint: str = ""
    ai_api_key: str = ""
    ai_model: str = ""
    embedding_model: str = ""
    embedding_api_endpoint: str = ""
    embedding_api_key: str = ""
    rerank_model: str = ""
    rerank_use_eembbing_endpoint: bool = False
    embedding_top_k: int | None = Field(default=None, ge=1, le=50)
    embedding_score: float | None = Field(default=None, ge=0.0, le=1.0)
    ai_tags_prompt: str = ""
    ai_comment_prompt: str = ""
    tavily_api_key: str = ""

    @property
    def resolved_embedding_endpoint(self) -> str:
        """Endpoint de embeddings, caindo para o endpoint principal."""
        return self.embedding_api_endpoint or self.ai_api_endpoint

    @property
    def resolved_embedding_key(self) -> str:
        """API key de embeddings, caindo para a key principal."""
        return self.embedding_api_key or self.ai_api_key
