"""Orquestração das completions com streaming (histórico, RAG, busca web e ferramentas)."""

import json
import logging
import uuid
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool, StructuredTool

from blinko.agents.base_agent import text_of
from blinko.agents.factory import AiModelFactory
from blinko.config.settings import settings
from blinko.schemas.ai import ChatMessage, NoteResponse
from blinko.schemas.config import AIConfig
from blinko.schemas.embedding import SimilarNote
from blinko.services.embedding_service import EmbeddingService
from blinko.stores.note_store import NoteStore
from blinko.utils.errors import AppError, ConfigurationError
from blinko.utils.web_search import WebSearchTool

logger = logging.getLogger(__name__)

WebSearchFactory = Callable[[str | None], WebSearchTool]


def to_langchain_messages(conversations: Sequence[ChatMessage]) -> list[BaseMessage]:
    """
    Converte o histórico recebido em mensagens LangChain (nova lista).

    Mensagens de ferramenta do histórico não têm o tool_call_id original,
    então entram como contexto do sistema.
    """
    messages: list[BaseMessage] = []
    for message in conversations:
        if message.role == "user":
            messages.append(HumanMessage(content=message.content))
        elif message.role == "assistant":
            messages.append(AIMessage(content=message.content))
        elif message.role == "system":
            messages.append(SystemMessage(content=message.content))
        else:
            messages.append(SystemMessage(content=f"Tool result: {message.content}"))
    return messages


def format_references(references: Sequence[SimilarNote]) -> str:
    """Formata as notas recuperadas para o contexto do modelo."""
    lines = ["Relevant notes from the user's knowledge base:", ""]
    for i, note in enumerate(references, 1):
        origin = f" (attachment {note.source})" if note.entity_type == "attachment" else ""
        lines.append(f"[{i}] Note #{note.id}{origin}:")
        lines.append(note.content)
        lines.append("")
    return "\n".join(lines).strip()


def text_delta(delta: str) -> dict[str, Any]:
    return {"chunk": {"type": "text-delta", "textDelta": delta}}


class CompletionService:
    """
    Compõe uma completion com streaming.

    Emite zero ou mais {"chunk": ...} e, ao final, exatamente um
    {"notes": [...], "references": [...]}. Se algo falhar, emite
    {"error": ..., "code": ...} e encerra; o que já foi entregue não é desfeito.
    """

    def __init__(
        self,
        factory: AiModelFactory,
        embedding_service: EmbeddingService,
        notes: NoteStore,
        web_search_factory: WebSearchFactory | None = None,
        max_tool_steps: int | None = None,
    ):
        """
        Inicializa o orquestrador.

        Args:
            factory: Fábrica de agentes.
            embedding_service: Busca por similaridade (RAG e ferramenta search_notes).
            notes: Store de notas (ferramenta create_note).
            web_search_factory: Cria a busca web a partir da API key configurada.
            max_tool_steps: Rodadas máximas de chamadas de ferramenta por completion.
        """
        self.factory = factory
        self.embedding_service = embedding_service
        self.notes = notes
        self.web_search_factory = web_search_factory or (lambda api_key: WebSearchTool(api_key=api_key))
        self.max_tool_steps = max_tool_steps if max_tool_steps is not None else settings.completion_max_tool_steps

    async def complete(
        self,
        question: str,
        conversations: Sequence[ChatMessage] = (),
        with_tools: bool = False,
        with_online: bool = False,
        with_rag: bool = True,
        system_prompt: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Gera a resposta para a pergunta, em streaming.

        Args:
            question: Pergunta do usuário.
            conversations: Histórico da conversa (não é alterado).
            with_tools: Expõe create_note e search_notes ao modelo.
            with_online: Adiciona resultados de busca web ao contexto.
            with_rag: Adiciona notas similares ao contexto.
            system_prompt: Prompt do sistema do chat (opcional).

        Yields:
            dict: Eventos do stream.
        """
        created_notes: list[NoteResponse] = []
        references: list[SimilarNote] = []

        try:
            config = await self.factory.global_config()
            agent = await self.factory.chat_agent(system_prompt)

            messages = to_langchain_messages(conversations)

            if with_rag:
                references = await self._retrieve(question, config)
                if references:
                    messages.append(SystemMessage(content=format_references(references)))

            if with_online:
                web_context = await self._search_web(question, config)
                if web_context:
                    messages.append(SystemMessage(content=web_context))

            messages.append(HumanMessage(content=question))

            tools = self._build_tools(config, created_notes) if with_tools else []
            tools_by_name = {tool.name: tool for tool in tools}

            for step in range(self.max_tool_steps + 1):
                gathered = None
                async with aclosing(agent.stream_chunks(messages, tools)) as chunks:
                    async for chunk in chunks:
                        delta = text_of(chunk.content)
                        if delta:
                            yield text_delta(delta)
                        gathered = chunk if gathered is None else gathered + chunk

                tool_calls = getattr(gathered, "tool_calls", None) or []
                if not tool_calls:
                    break
                if step == self.max_tool_steps:
                    logger.warning(f"⚠️ Limite de {self.max_tool_steps} rodadas de ferramentas atingido")
                    break

                for call in tool_calls:
                    call["id"] = call.get("id") or f"call_{uuid.uuid4().hex[:12]}"
                messages.append(AIMessage(content=gathered.content, tool_calls=tool_calls))

                for call in tool_calls:
                    yield {
                        "chunk": {
                            "type": "tool-call",
                            "toolCallId": call["id"],
                            "toolName": call["name"],
                            "args": call["args"],
                        }
                    }
                    result = await self._run_tool(tools_by_name, call)
                    yield {
                        "chunk": {
                            "type": "tool-result",
                            "toolCallId": call["id"],
                            "toolName": call["name"],
                            "result": result,
                        }
                    }
                    messages.append(ToolMessage(content=result, tool_call_id=call["id"]))
        except AppError as e:
            logger.error(f"❌ Completion interrompida: {e.code}: {e.message}")
            yield {"error": e.message, "code": e.code}
            return
        except Exception as e:
            logger.exception(f"❌ Erro inesperado na completion: {e}")
            yield {"error": "Erro interno do servidor", "code": "INTERNAL_ERROR"}
            return

        yield {
            "notes": [note.model_dump(by_alias=True, mode="json") for note in created_notes],
            "references": [ref.model_dump(by_alias=True, mode="json") for ref in references],
        }

    async def _retrieve(self, question: str, config: AIConfig) -> list[SimilarNote]:
        """Busca notas similares; sem embedding configurado, a completion segue sem contexto."""
        try:
            references = await self.embedding_service.search(question, config=config)
        except ConfigurationError as e:
            logger.warning(f"⚠️ RAG ignorado: {e.message}")
            return []
        logger.info(f"📚 RAG: {len(references)} nota(s) relevante(s)")
        return references

    async def _search_web(self, question: str, config: AIConfig) -> str:
        web_search = self.web_search_factory(config.tavily_api_key or None)
        if not web_search.is_available():
            return ""
        results = await web_search.search(question)
        logger.info(f"🌐 Busca web: {len(results)} resultado(s)")
        return web_search.format_results_for_prompt(results)

    async def _run_tool(self, tools_by_name: dict[str, BaseTool], call: dict[str, Any]) -> str:
        tool = tools_by_name.get(call["name"])
        if tool is None:
            return f"Error: unknown tool {call['name']}"
        try:
            output = await tool.ainvoke(call["args"])
        except AppError as e:
            logger.warning(f"⚠️ Ferramenta {call['name']} falhou: {e.message}")
            return f"Error: {e.message}"
        except ValueError as e:
            logger.warning(f"⚠️ Argumentos inválidos para {call['name']}: {e}")
            return f"Error: invalid arguments: {e}"
        except Exception as e:
            logger.exception(f"❌ Erro inesperado na ferramenta {call['name']}: {e}")
            return f"Error: {e}"
        return output if isinstance(output, str) else json.dumps(output, ensure_ascii=False, default=str)

    def _build_tools(self, config: AIConfig, created_notes: list[NoteResponse]) -> list[BaseTool]:
        """Cria as ferramentas do chat, ligadas a esta completion."""

        async def create_note(content: str, tags: list[str] | None = None) -> str:
            note = await self.notes.create_note(content, tags)
            created_notes.append(NoteResponse.model_validate(note))
            logger.info(f"📝 Nota {note.id} criada pela IA")
            # Falha no embedding não desfaz a nota; o rebuild reconcilia
            await self.embedding_service.upsert(note.id, content, "insert", note.updated_at or note.created_at)
            return json.dumps({"id": note.id, "content": note.content, "tags": note.tags or []}, ensure_ascii=False)

        async def search_notes(query: str) -> str:
            found = await self.embedding_service.search(query, config=config)
            return json.dumps(
                [{"id": note.id, "content": note.content, "similarity": note.similarity} for note in found],
                ensure_ascii=False,
            )

        return [
            StructuredTool.from_function(
                coroutine=create_note,
                name="create_note",
                description=(
                    "Create a new note in the user's Blinko. Use it for reminders, todos "
                    "and ideas the user asks to save. Tags are paths like Parent/Child."
                ),
            ),
            StructuredTool.from_function(
                coroutine=search_notes,
                name="search_notes",
                description="Search the user's notes by meaning and return the most similar ones.",
            ),
        ]
