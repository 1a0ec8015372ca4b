"""Base Agent para todos os agentes do sistema."""

import logging
from contextlib import aclosing
from typing import AsyncIterator, Sequence

import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, BaseMessageChunk, HumanMessage, SystemMessage
from langchain_core.tools import BaseTool

from blinko.utils.errors import AppError, ConnectivityError, UpstreamError

logger = logging.getLogger(__name__)


def translate_model_error(provider: str, error: Exception) -> AppError:
    """
    Converte exceções dos SDKs dos fornecedores na taxonomia da aplicação.

    Args:
        provider: Nome do provedor (para a mensagem).
        error: Exceção original.

    Returns:
        AppError: ConnectivityError para falhas de rede, UpstreamError para o resto.
    """
    if isinstance(error, AppError):
        return error
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return ConnectivityError(provider, details={"reason": str(error)})
    return UpstreamError(provider, str(error) or type(error).__name__)


def text_of(content: str | list) -> str:
    """Extrai o texto do conteúdo de uma mensagem (string ou lista de partes)."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def split_list(text: str | None) -> list[str]:
    """Divide uma resposta separada por vírgulas, descartando itens vazios."""
    if not text:
        return []
    return [item.strip() for item in text.strip().split(",") if item.strip()]


class BaseAgent:
    """Modelo de chat configurado para uma finalidade específica."""

    SYSTEM_PROMPT = "You are a helpful assistant."

    def __init__(
        self,
        llm: BaseChatModel,
        provider: str,
        name: str | None = None,
        system_prompt: str | None = None,
    ):
        """
        Inicializa o agente base.

        Args:
            llm: Chat model criado pelo adaptador do provedor.
            provider: Nome do provedor (usado nas mensagens de erro).
            name: Nome do agente.
            system_prompt: Prompt do sistema; usa SYSTEM_PROMPT da classe se omitido.
        """
        self.llm = llm
        self.provider = provider
        self.name = name or self.__class__.__name__
        self.system_prompt = system_prompt or self.SYSTEM_PROMPT

    def build_messages(self, messages: Sequence[BaseMessage]) -> list[BaseMessage]:
        """Prefixa o prompt do sistema a uma cópia das mensagens."""
        return [SystemMessage(content=self.system_prompt), *messages]

    async def generate(self, user_message: str) -> str:
        """
        Gera uma resposta completa (sem streaming).

        Args:
            user_message: Mensagem do usuário.

        Returns:
            str: Resposta gerada.

        Raises:
            AppError: ConnectivityError ou UpstreamError se o modelo falhar.
        """
        messages = self.build_messages([HumanMessage(content=user_message)])
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"❌ {self.name}: erro ao gerar resposta: {type(e).__name__}: {e}")
            raise translate_model_error(self.provider, e) from e
        return text_of(response.content).strip()

    async def stream_chunks(
        self,
        messages: Sequence[BaseMessage],
        tools: Sequence[BaseTool] | None = None,
    ) -> AsyncIterator[BaseMessageChunk]:
        """
        Transmite os chunks brutos do modelo (texto e chamadas de ferramenta).

        Fechar o iterador (cliente desconectado) fecha o stream do provedor.

        Args:
            messages: Mensagens da conversa (sem o prompt do sistema).
            tools: Ferramentas disponíveis ao modelo nesta chamada.

        Raises:
            AppError: ConnectivityError ou UpstreamError se o modelo falhar.
        """
        llm = self.llm.bind_tools(list(tools)) if tools else self.llm
        upstream = llm.astream(self.build_messages(messages))
        try:
            async for chunk in upstream:
                yield chunk
        except AppError:
            raise
        except Exception as e:
            logger.error(f"❌ {self.name}: erro no stream do modelo: {type(e).__name__}: {e}")
            raise translate_model_error(self.provider, e) from e
        finally:
            await upstream.aclose()

    async def stream(self, messages: Sequence[BaseMessage]) -> AsyncIterator[str]:
        """Transmite apenas os pedaços de texto da resposta."""
        async with aclosing(self.stream_chunks(messages)) as chunks:
            async for chunk in chunks:
                delta = text_of(chunk.content)
                if delta:
                    yield delta

    def __repr__(self) -> str:
        """Representação string do agente."""
        return f"<{self.__class__.__name__}(name={self.name})>"
