"""Persistência dos embeddings com pgvector."""

from datetime import datetime

from sqlalchemy import Select, delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from blinko.models.note import utcnow
from blinko.models.note_embedding import NoteEmbedding
from blinko.schemas.embedding import SimilarNote


def similarity_query(vector: list[float], model: str, limit: int, min_score: float) -> Select:
    """
    Monta a busca por similaridade de cosseno restrita a um modelo.

    O filtro por modelo e dimensão fica num CTE materializado: o Postgres não
    garante a ordem de avaliação dos filtros de um mesmo WHERE, e o pgvector
    falha ao comparar vetores de dimensões diferentes.
    """
    candidates = (
        select(
            NoteEmbedding.note_id,
            NoteEmbedding.entity_type,
            NoteEmbedding.source,
            NoteEmbedding.content,
            NoteEmbedding.embedding,
        )
        .where(NoteEmbedding.embedding_model == model)
        .where(func.vector_dims(NoteEmbedding.embedding) == len(vector))
        .cte("model_embeddings")
        .prefix_with("MATERIALIZED")
    )
    distance = candidates.c.embedding.cosine_distance(vector)
    return (
        select(
            candidates.c.note_id,
            candidates.c.entity_type,
            candidates.c.source,
            candidates.c.content,
            (1 - distance).label("similarity"),
        )
        .where(1 - distance >= min_score)
        .order_by(distance)
        .limit(limit)
    )


class EmbeddingStore:
    """Upsert, remoção e busca por similaridade de embeddings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(
        self,
        note_id: int,
        vector: list[float],
        content: str,
        model: str,
        source_created_at: datetime,
        entity_type: str = "note",
        source: str = "",
    ) -> None:
        """
        Substitui (ou cria) o registro ativo da entidade.

        O registro anterior é sobrescrito por inteiro, nunca mesclado.
        """
        values = {
            "note_id": note_id,
            "entity_type": entity_type,
            "source": source,
            "embedding": vector,
            "content": content,
            "embedding_model": model,
            "source_created_at": source_created_at,
            "updated_at": utcnow(),
        }
        stmt = insert(NoteEmbedding).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_note_embeddings_entity",
            set_={key: stmt.excluded[key] for key in values if key not in ("note_id", "entity_type", "source")},
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def delete(self, note_id: int) -> int:
        """Remove todos os registros da nota (nota e anexos). Idempotente."""
        result = await self.db.execute(
            delete(NoteEmbedding).where(NoteEmbedding.note_id == note_id)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def get(self, note_id: int, entity_type: str = "note", source: str = "") -> NoteEmbedding | None:
        result = await self.db.execute(
            select(NoteEmbedding).where(
                NoteEmbedding.note_id == note_id,
                NoteEmbedding.entity_type == entity_type,
                NoteEmbedding.source == source,
            )
        )
        return result.scalar_one_or_none()

    async def source_times(self) -> dict[int, datetime]:
        """Mapeia note_id -> versão do conteúdo usada no embedding da nota."""
        result = await self.db.execute(
            select(NoteEmbedding.note_id, NoteEmbedding.source_created_at).where(
                NoteEmbedding.entity_type == "note"
            )
        )
        return {row[0]: row[1] for row in result.all()}

    async def search(
        self,
        vector: list[float],
        model: str,
        limit: int = 3,
        min_score: float = 0.3,
    ) -> list[SimilarNote]:
        """
        Busca por similaridade de cosseno.

        Args:
            vector: Embedding da consulta.
            model: Modelo que gerou o embedding (vetores de modelos diferentes não se comparam).
            limit: Número máximo de notas.
            min_score: Similaridade mínima (0-1).

        Returns:
            list[SimilarNote]: Melhor registro de cada nota, do mais similar ao menos.
        """
        result = await self.db.execute(similarity_query(vector, model, limit * 3, min_score))

        best: dict[int, SimilarNote] = {}
        for row in result.all():
            if row.note_id in best:
                continue
            best[row.note_id] = SimilarNote(
                id=row.note_id,
                content=row.content,
                entity_type=row.entity_type,
                source=row.source,
                similarity=round(float(row.similarity), 4),
            )
        return list(best.values())[:limit]
