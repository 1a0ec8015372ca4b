"""Model de embedding de nota e anexo."""

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from blinko.config.database import Base
from blinko.models.note import utcnow


class NoteEmbedding(Base):
    """
    Embedding vetorial de uma nota (ou de um anexo da nota) para RAG.

    Existe no máximo um registro ativo por entidade
    (note_id, entity_type, source); um upsert substitui o registro inteiro.
    """

    __tablename__ = "note_embeddings"
    __table_args__ = (
        UniqueConstraint("note_id", "entity_type", "source", name="uq_note_embeddings_entity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Sem FK: o embedding pode sobreviver brevemente à nota até o próximo delete/rebuild
    note_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False, default="note")
    source: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    # Sem dimensão fixa: cada provedor gera vetores de tamanho diferente
    embedding: Mapped[list[float]] = mapped_column(Vector(), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    embedding_model: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    source_created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        """Representação string do embedding."""
        return f"<NoteEmbedding(note_id={self.note_id}, type={self.entity_type})>"
