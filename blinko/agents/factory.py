"""Fábrica de agentes e embedders a partir da configuração persistida."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from blinko.agents.base_agent import BaseAgent
from blinko.agents.chat import ChatAgent
from blinko.agents.comment import CommentAgent
from blinko.agents.summarizer import SummarizeAgent
from blinko.agents.tagging import EmojiAgent, TagAgent
from blinko.agents.writing import WRITING_PROMPTS, WritingAgent
from blinko.providers.base import ProviderAdapter
from blinko.providers.registry import ProviderRegistry, provider_registry
from blinko.schemas.config import AIConfig
from blinko.stores.config_store import ConfigStore
from blinko.utils.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


class AgentKind(str, Enum):
    """Finalidades de agente suportadas."""

    TAG = "tag"
    EMOJI = "emoji"
    SUMMARIZE = "summarize"
    WRITING = "writing"
    COMMENT = "comment"
    CHAT = "chat"


AGENT_CLASSES: dict[AgentKind, type[BaseAgent]] = {
    AgentKind.TAG: TagAgent,
    AgentKind.EMOJI: EmojiAgent,
    AgentKind.SUMMARIZE: SummarizeAgent,
    AgentKind.WRITING: WritingAgent,
    AgentKind.COMMENT: CommentAgent,
    AgentKind.CHAT: ChatAgent,
}


@dataclass
class Embedder:
    """Adaptador ligado ao endpoint, key e modelo de embeddings configurados."""

    adapter: ProviderAdapter
    endpoint: str
    api_key: str
    model: str

    async def embed(self, text: str) -> list[float]:
        return await self.adapter.embed(self.endpoint, text, self.model, self.api_key or None)


class AiModelFactory:
    """Resolve agentes e embedders lendo a configuração de IA a cada resolução."""

    def __init__(self, config_store: ConfigStore, registry: ProviderRegistry | None = None):
        """
        Inicializa a fábrica.

        Args:
            config_store: Leitura da configuração global de IA.
            registry: Registro de adaptadores (padrão: todos os fornecedores suportados).
        """
        self.config_store = config_store
        self.registry = registry or provider_registry

    async def global_config(self) -> AIConfig:
        """Lê a configuração global de IA (sem cache)."""
        return await self.config_store.get_ai_config()

    async def resolve_agent(self, kind: AgentKind | str, options: dict[str, Any] | None = None) -> BaseAgent:
        """
        Cria o agente da finalidade pedida, ligado ao provedor e modelo configurados.

        Args:
            kind: Finalidade do agente.
            options: Opções da finalidade:
                - mode: expand, polish ou custom (writing)
                - system_prompt: prompt do sistema do chat

        Returns:
            BaseAgent: Agente pronto para uso.

        Raises:
            ConfigurationError: Se não houver provedor ou modelo configurado.
        """
        options = options or {}
        kind = AgentKind(kind)
        config = await self.global_config()
        adapter = self.registry.get(config.provider)
        llm = adapter.chat_model(config)

        system_prompt = None
        if kind == AgentKind.TAG:
            system_prompt = config.ai_tags_prompt or None
        elif kind == AgentKind.COMMENT:
            system_prompt = config.ai_comment_prompt or None
        elif kind == AgentKind.WRITING:
            mode = options.get("mode", "custom")
            if mode not in WRITING_PROMPTS:
                raise ValidationError(f"Modo de escrita inválido: {mode}")
            system_prompt = WRITING_PROMPTS[mode]
        elif kind == AgentKind.CHAT:
            system_prompt = options.get("system_prompt") or None

        agent_class = AGENT_CLASSES[kind]
        logger.debug(f"🤖 Agente {agent_class.__name__} resolvido para {adapter.name}/{config.ai_model}")
        return agent_class(llm=llm, provider=adapter.name, system_prompt=system_prompt)

    async def tag_agent(self) -> TagAgent:
        return await self.resolve_agent(AgentKind.TAG)

    async def emoji_agent(self) -> EmojiAgent:
        return await self.resolve_agent(AgentKind.EMOJI)

    async def summarize_agent(self) -> SummarizeAgent:
        return await self.resolve_agent(AgentKind.SUMMARIZE)

    async def writing_agent(self, mode: str = "custom") -> WritingAgent:
        return await self.resolve_agent(AgentKind.WRITING, {"mode": mode})

    async def comment_agent(self) -> CommentAgent:
        return await self.resolve_agent(AgentKind.COMMENT)

    async def chat_agent(self, system_prompt: str | None = None) -> ChatAgent:
        return await self.resolve_agent(AgentKind.CHAT, {"system_prompt": system_prompt})

    async def embedder(self, config: AIConfig | None = None) -> Embedder:
        """
        Cria o embedder configurado.

        Args:
            config: Configuração já lida na mesma operação (evita nova leitura).

        Raises:
            ConfigurationError: Se não houver provedor ou modelo de embedding.
        """
        config = config or await self.global_config()
        adapter = self.registry.get(config.provider)
        if not config.embedding_model:
            raise ConfigurationError("Nenhum modelo de embedding configurado")
        return Embedder(
            adapter=adapter,
            endpoint=config.resolved_embedding_endpoint,
            api_key=config.resolved_embedding_key,
            model=config.embedding_model,
        )
