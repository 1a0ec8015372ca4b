"""Dependências FastAPI: stores, fábrica de modelos e services."""

from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blinko.agents.factory import AiModelFactory
from blinko.config.database import AsyncSessionLocal, get_db
from blinko.providers.registry import ProviderRegistry, provider_registry
from blinko.services.completion_service import CompletionService
from blinko.services.embedding_service import EmbeddingService
from blinko.services.rebuild_job import RebuildEmbeddingJob, RebuildScope
from blinko.stores.config_store import ConfigStore
from blinko.stores.embedding_store import EmbeddingStore
from blinko.stores.note_store import CommentStore, ConversationStore, NoteStore


def get_provider_registry() -> ProviderRegistry:
    return provider_registry


def get_note_store(db: Annotated[AsyncSession, Depends(get_db)]) -> NoteStore:
    return NoteStore(db)


def get_embedding_store(db: Annotated[AsyncSession, Depends(get_db)]) -> EmbeddingStore:
    return EmbeddingStore(db)


def get_config_store(db: Annotated[AsyncSession, Depends(get_db)]) -> ConfigStore:
    return ConfigStore(db)


def get_conversation_store(db: Annotated[AsyncSession, Depends(get_db)]) -> ConversationStore:
    return ConversationStore(db)


def get_comment_store(db: Annotated[AsyncSession, Depends(get_db)]) -> CommentStore:
    return CommentStore(db)


def get_model_factory(
    config_store: Annotated[ConfigStore, Depends(get_config_store)],
    registry: Annotated[ProviderRegistry, Depends(get_provider_registry)],
) -> AiModelFactory:
    return AiModelFactory(config_store, registry)


def get_embedding_service(
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
    embeddings: Annotated[EmbeddingStore, Depends(get_embedding_store)],
    notes: Annotated[NoteStore, Depends(get_note_store)],
) -> EmbeddingService:
    return EmbeddingService(factory, embeddings, notes)


def get_completion_service(
    factory: Annotated[AiModelFactory, Depends(get_model_factory)],
    embedding_service: Annotated[EmbeddingService, Depends(get_embedding_service)],
    notes: Annotated[NoteStore, Depends(get_note_store)],
) -> CompletionService:
    return CompletionService(factory, embedding_service, notes)


def get_rebuild_job(request: Request) -> RebuildEmbeddingJob:
    """Retorna o controlador de rebuild único da aplicação."""
    return request.app.state.rebuild_job


@asynccontextmanager
async def rebuild_scope() -> AsyncIterator[RebuildScope]:
    """
    Escopo do job de rebuild, com sessão própria.

    O job vive além da requisição que o iniciou, então não pode usar a
    sessão de get_db.
    """
    async with AsyncSessionLocal() as db:
        notes = NoteStore(db)
        embeddings = EmbeddingStore(db)
        factory = AiModelFactory(ConfigStore(db), provider_registry)
        yield RebuildScope(
            notes=notes,
            embeddings=embeddings,
            service=EmbeddingService(factory, embeddings, notes),
            db=db,
        )
