"""Rotas RPC de IA (embeddings, completions, rebuild e provedores)."""

import json
import logging
from contextlib import aclosing
from typing import Annotated, Any, AsyncIterator

from fastapi import APIRouter, Body, Depends
from fastapi.responses import StreamingResponse

from blinko.agents.factory import AiModelFactory
from blinko.core.dependencies import (
    get_comment_store,
    get_completion_service,
    get_conversation_store,
    get_embedding_service,
    get_model_factory,
    get_note_store,
    get_provider_registry,
    get_rebuild_job,
)
from blinko.providers.registry import ProviderRegistry
from blinko.schemas.ai import (
    AICommentRequest,
    CommentResponse,
    CompletionRequest,
    ContentRequest,
    ConversationResponse,
    SummarizeTitleRequest,
    WritingRequest,
)
from blinko.schemas.embedding import (
    EmbeddingAttachmentRequest,
    EmbeddingDeleteRequest,
    EmbeddingResult,
    EmbeddingUpsertRequest,
    RebuildProgress,
    RebuildStartRequest,
    SuccessResponse,
)
from blinko.schemas.provider import ConnectionTestRequest, FetchModelsRequest, ModelCatalog
from blinko.services.completion_service import CompletionService, text_delta
from blinko.services.embedding_service import EmbeddingService
from blinko.services.rebuild_job import RebuildEmbeddingJob
from blinko.stores.note_store import CommentStore, ConversationStore, NoteStore
from blinko.utils.errors import AppError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["IA"])

NDJSON = "application/x-ndjson"


async def ndjson(events: AsyncIterator[dict[str, Any]]) -> AsyncIterator[str]:
    """Serializa eventos como JSON delimitado por linha, fechando a origem ao terminar."""
    async with aclosing(events) as stream:
        async for event in stream:
            yield json.dumps(event, ensure_ascii=False) + "\n"


async def guarded(events: AsyncIterator[dict[str, Any]], label: str) -> AsyncIterator[dict[str, Any]]:
    """Converte uma falha no meio do stream numa última linha {"error", "code"}."""
    try:
        async with aclosing(events) as stream:
            async for event in stream:
                yield event
    except AppError as e:
        logger.error(f"❌ {label} interrompido: {e.code}: {e.message}")
        yield {"error": e.message, "code": e.code}
    except Exception as e:
        logger.exception(f"❌ Erro inesperado em {label}: {e}")
        yield {"error": "Erro interno do servidor", "code": "INTERNAL_ERROR"}


@router.post(
    "/embeddingUpsert",
    response_model=EmbeddingResult,
    response_model_exclude_none=True,
    summary="Indexar nota",
    description="Calcula o embedding de uma nota e substitui o registro existente.",
)
async def embedding_upsert(
    request: EmbeddingUpsertRequest,
    service: Annotated[EmbeddingService, Depends(get_embedding_service)],
) -> EmbeddingResult:
    """Upsert do embedding de uma nota."""
    return await service.upsert_note(request.id, request.content, request.type)


@router.post(
    "/embeddingDelete",
    response_model=EmbeddingResult,
    response_model_exclude_none=True,
    summary="Remover embeddings",
    description="Remove os embeddings da nota e dos seus anexos.",
)
async def embedding_delete(
    request: EmbeddingDeleteRequest,
    service: Annotated[EmbeddingService, Depends(get_embedding_service)],
) -> EmbeddingResult:
    return await service.delete(request.id)


@router.post(
    "/embeddingInsertAttachments",
    response_model=EmbeddingResult,
    response_model_exclude_none=True,
    summary="Indexar anexo",
    description="Extrai o texto de um anexo e indexa sob o id da nota.",
)
async def embedding_insert_attachments(
    request: EmbeddingAttachmentRequest,
    service: Annotated[EmbeddingService, Depends(get_embedding_service)],
) -> EmbeddingResult:
    return await service.insert_attachment(request.id, request.file_path)


@router.post(
    "/completions",
    summary="Completion com streaming",
    description=(
        "Responde à pergunta em streaming (NDJSON): linhas {chunk} seguidas de "
        "uma linha final {notes, references}."
    ),
)
async def completions(
    request: CompletionRequest,
    service: Annotated[CompletionService, Depends(get_completion_service)],
) -> StreamingResponse:
    """
    Completion com histórico, RAG, busca web e ferramentas opcionais.

    Args:
        request: Pergunta, histórico e flags.
        service: Orquestrador de completions.

    Returns:
        StreamingResponse: Eventos NDJSON na ordem em que são gerados.
    """
    events = service.complete(
        question=request.question,
        conversations=request.conversations,
        with_tools=request.with_tools,
        with_online=request.with_online,
        with_rag=request.with_rag,
        system_prompt=request.system_prompt,
    )
    return StreamingResponse(ndjson(events), media_type=NDJSON)


@router.post(
    "/writing",
    summary="Assistente de escrita",
    description="Expande, revisa ou atende a um pedido livre sobre a nota, em streaming (NDJSON).",
)
async def writing(
    request: WritingRequest,
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
) -> StreamingResponse:
    """Transmite a saída do agente de escrita."""
    agent = await factory.writing_agent(request.type)

    async def events() -> AsyncIterator[dict[str, Any]]:
        async with aclosing(agent.write(request.question, request.content)) as deltas:
            async for delta in deltas:
                yield text_delta(delta)

    return StreamingResponse(ndjson(guarded(events(), "Writing")), media_type=NDJSON)


@router.post(
    "/rebuildEmbeddingStart",
    response_model=SuccessResponse,
    summary="Iniciar rebuild",
    description="Inicia o rebuild dos embeddings; sem efeito se já houver um em execução.",
)
async def rebuild_embedding_start(
    job: Annotated[RebuildEmbeddingJob, Depends(get_rebuild_job)],
    request: Annotated[RebuildStartRequest | None, Body()] = None,
) -> SuccessResponse:
    force = request.force if request is not None else True
    await job.start(force=force)
    return SuccessResponse(success=True)


@router.post(
    "/rebuildingEmbeddings",
    summary="Rebuild com streaming",
    description=(
        "Inicia o rebuild (ou acompanha o que já está em execução) e transmite em NDJSON "
        "uma linha {result} por item e, por último, {progress}."
    ),
)
async def rebuilding_embeddings(
    job: Annotated[RebuildEmbeddingJob, Depends(get_rebuild_job)],
    request: Annotated[RebuildStartRequest | None, Body()] = None,
) -> StreamingResponse:
    force = request.force if request is not None else True
    return StreamingResponse(ndjson(guarded(job.follow(force), "Rebuild")), media_type=NDJSON)


@router.post(
    "/rebuildEmbeddingStop",
    response_model=SuccessResponse,
    summary="Parar rebuild",
    description="Pede a parada do rebuild; acompanhe a transição pelo progresso.",
)
async def rebuild_embedding_stop(
    job: Annotated[RebuildEmbeddingJob, Depends(get_rebuild_job)],
) -> SuccessResponse:
    await job.stop()
    return SuccessResponse(success=True)


@router.get(
    "/rebuildEmbeddingProgress",
    response_model=RebuildProgress,
    summary="Progresso do rebuild",
)
async def rebuild_embedding_progress(
    job: Annotated[RebuildEmbeddingJob, Depends(get_rebuild_job)],
) -> RebuildProgress:
    return job.progress()


@router.post(
    "/testConnect",
    response_model=SuccessResponse,
    summary="Testar conexão",
    description="Verifica se o provedor responde no endpoint informado.",
)
async def test_connect(
    request: ConnectionTestRequest,
    registry: Annotated[ProviderRegistry, Depends(get_provider_registry)],
) -> SuccessResponse:
    """
    Testa a conexão com um provedor.

    Raises:
        ConfigurationError: Provedor desconhecido.
        ConnectivityError: Provedor inacessível.
        UpstreamError: Provedor respondeu algo irreconhecível.
    """
    adapter = registry.get(request.provider)
    await adapter.test_connection(request.ai_api_endpoint, request.ai_api_key)
    logger.info(f"✅ Conexão com {adapter.name} verificada")
    return SuccessResponse(success=True)


@router.post(
    "/fetchModels",
    response_model=ModelCatalog,
    summary="Listar modelos",
    description="Lista os modelos de chat, embedding e rerank disponíveis no provedor.",
)
async def fetch_models(
    request: FetchModelsRequest,
    registry: Annotated[ProviderRegistry, Depends(get_provider_registry)],
) -> ModelCatalog:
    adapter = registry.get(request.provider)
    return await adapter.fetch_catalog(request)


@router.post(
    "/autoTag",
    response_model=list[str],
    summary="Sugerir tags",
    description="Sugere tags para a nota, considerando as tags já existentes.",
)
async def auto_tag(
    request: ContentRequest,
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
    notes: Annotated[NoteStore, Depends(get_note_store)],
) -> list[str]:
    agent = await factory.tag_agent()
    existing_tags = await notes.get_all_tags()
    return await agent.suggest_tags(request.content, existing_tags)


@router.post(
    "/autoEmoji",
    response_model=list[str],
    summary="Sugerir emojis",
)
async def auto_emoji(
    request: ContentRequest,
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
) -> list[str]:
    agent = await factory.emoji_agent()
    return await agent.suggest_emojis(request.content)


@router.post(
    "/summarizeConversationTitle",
    response_model=ConversationResponse,
    summary="Gerar título da conversa",
    description="Resume a conversa em um título curto e o salva.",
)
async def summarize_conversation_title(
    request: SummarizeTitleRequest,
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
    conversations: Annotated[ConversationStore, Depends(get_conversation_store)],
) -> ConversationResponse:
    """
    Gera e salva o título de uma conversa.

    Raises:
        NotFoundError: Se a conversa não existir.
    """
    conversation = await conversations.get(request.conversation_id)
    if conversation is None:
        raise NotFoundError(resource="Conversa", details={"id": request.conversation_id})

    agent = await factory.summarize_agent()
    title = await agent.summarize_title(request.conversations)
    conversation = await conversations.update_title(conversation, title)
    return ConversationResponse.model_validate(conversation)


@router.post(
    "/AIComment",
    response_model=CommentResponse,
    summary="Comentário da IA",
    description="Gera um comentário sobre a nota e o salva como comentário da IA.",
)
async def ai_comment(
    request: AICommentRequest,
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
    notes: Annotated[NoteStore, Depends(get_note_store)],
    comments: Annotated[CommentStore, Depends(get_comment_store)],
) -> CommentResponse:
    """
    Comenta uma nota.

    Raises:
        NotFoundError: Se a nota não existir.
    """
    note = await notes.get_note(request.note_id)
    if note is None:
        raise NotFoundError(resource="Nota", details={"id": request.note_id})

    agent = await factory.comment_agent()
    text = await agent.comment(request.content)
    comment = await comments.create(note.id, text, agent.AUTHOR)
    return CommentResponse.model_validate(comment)
