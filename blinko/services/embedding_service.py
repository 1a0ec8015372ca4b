"""Service para geração e gerenciamento de embeddings."""

import logging
from datetime import datetime
from typing import Literal

from blinko.agents.factory import AiModelFactory
from blinko.config.settings import settings
from blinko.schemas.config import AIConfig
from blinko.schemas.embedding import EmbeddingResult, SimilarNote
from blinko.stores.embedding_store import EmbeddingStore
from blinko.stores.note_store import NoteStore
from blinko.utils.attachments import AttachmentReader
from blinko.utils.errors import AppError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def failure(error: AppError) -> EmbeddingResult:
    """Converte um erro da aplicação em resultado estruturado."""
    return EmbeddingResult(ok=False, error=error.message, code=error.code)


class EmbeddingService:
    """
    Upsert, remoção e busca de embeddings de notas e anexos.

    Falhas do provedor são devolvidas como EmbeddingResult(ok=False) em vez de
    levantadas, para que quem chama decida entre tentar de novo ou reportar.
    Operações concorrentes no mesmo id seguem "última escrita vence".
    """

    def __init__(
        self,
        factory: AiModelFactory,
        embeddings: EmbeddingStore,
        notes: NoteStore,
        attachments: AttachmentReader | None = None,
    ):
        self.factory = factory
        self.embeddings = embeddings
        self.notes = notes
        self.attachments = attachments or AttachmentReader()

    async def upsert(
        self,
        note_id: int,
        content: str,
        kind: Literal["insert", "update"],
        source_time: datetime | None,
    ) -> EmbeddingResult:
        """
        Calcula (ou atualiza) o embedding da nota e persiste pelo id.

        Args:
            note_id: ID da nota.
            content: Conteúdo a embedar.
            kind: insert ou update.
            source_time: Versão do conteúdo (momento da última alteração da nota).

        Returns:
            EmbeddingResult: ok=True, ou ok=False com o erro.
        """
        if source_time is None:
            return failure(NotFoundError(resource="Nota", details={"id": note_id}))
        if not content.strip():
            return failure(ValidationError("Conteúdo vazio não pode ser indexado", details={"id": note_id}))

        try:
            embedder = await self.factory.embedder()

            vector = None
            if kind == "update":
                # Conteúdo idêntico com o mesmo modelo: reaproveita o vetor
                existing = await self.embeddings.get(note_id)
                if existing and existing.content == content and existing.embedding_model == embedder.model:
                    vector = list(existing.embedding)

            if vector is None:
                vector = await embedder.embed(content)

            await self.embeddings.upsert(
                note_id=note_id,
                vector=vector,
                content=content,
                model=embedder.model,
                source_created_at=source_time,
            )
        except AppError as e:
            logger.warning(f"⚠️ Falha ao indexar nota {note_id}: {e.message}")
            return failure(e)

        logger.debug(f"✅ Nota {note_id} indexada ({kind})")
        return EmbeddingResult(ok=True)

    async def upsert_note(self, note_id: int, content: str, kind: Literal["insert", "update"]) -> EmbeddingResult:
        """Busca a versão atual da nota e faz o upsert do conteúdo informado."""
        note = await self.notes.get_note(note_id)
        if note is None or note.created_at is None:
            return failure(NotFoundError(resource="Nota", details={"id": note_id}))
        return await self.upsert(note_id, content, kind, note.updated_at or note.created_at)

    async def delete(self, note_id: int) -> EmbeddingResult:
        """
        Remove os embeddings da nota e dos seus anexos.

        Idempotente: remover um embedding inexistente não é erro.
        """
        removed = await self.embeddings.delete(note_id)
        logger.debug(f"🗑️ {removed} embedding(s) removido(s) da nota {note_id}")
        return EmbeddingResult(ok=True)

    async def insert_attachment(self, note_id: int, file_path: str) -> EmbeddingResult:
        """
        Extrai o texto de um anexo e indexa sob o id da nota dona.

        Args:
            note_id: ID da nota dona do anexo.
            file_path: URL do anexo (ex.: /api/file/text.pdf).

        Returns:
            EmbeddingResult: ok=True, ou ok=False com o erro.
        """
        note = await self.notes.get_note(note_id)
        if note is None:
            return failure(NotFoundError(resource="Nota", details={"id": note_id}))

        try:
            text = await self.attachments.read_text(file_path)
            embedder = await self.factory.embedder()
            vector = await embedder.embed(text)
            await self.embeddings.upsert(
                note_id=note_id,
                vector=vector,
                content=text,
                model=embedder.model,
                source_created_at=note.updated_at or note.created_at,
                entity_type="attachment",
                source=file_path,
            )
        except AppError as e:
            logger.warning(f"⚠️ Falha ao indexar anexo {file_path} da nota {note_id}: {e.message}")
            return failure(e)

        logger.info(f"📎 Anexo {file_path} indexado na nota {note_id}")
        return EmbeddingResult(ok=True)

    async def search(
        self,
        query: str,
        limit: int | None = None,
        min_score: float | None = None,
        config: AIConfig | None = None,
    ) -> list[SimilarNote]:
        """
        Busca as notas mais similares à consulta.

        Args:
            query: Texto da consulta.
            limit: Número máximo de notas (padrão: embedding_top_k da configuração).
            min_score: Similaridade mínima (padrão: embedding_score da configuração).
            config: Configuração já lida pelo chamador.

        Returns:
            list[SimilarNote]: Notas ordenadas pela similaridade.

        Raises:
            AppError: Se a configuração ou o provedor falharem.
        """
        config = config or await self.factory.global_config()
        limit = limit or config.embedding_top_k or settings.default_embedding_top_k
        if min_score is None:
            min_score = (
                config.embedding_score
                if config.embedding_score is not None
                else settings.default_embedding_score
            )

        embedder = await self.factory.embedder(config)
        vector = await embedder.embed(query)
        return await self.embeddings.search(vector, embedder.model, limit=limit, min_score=min_score)
