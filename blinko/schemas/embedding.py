"""Schemas de embeddings e do rebuild do índice."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import Field

from blinko.schemas.base import CamelModel


class EmbeddingUpsertRequest(CamelModel):
    """Request de upsert de embedding de uma nota."""

    id: int = Field(..., description="ID da nota")
    content: str = Field(..., description="Conteúdo da nota")
    type: Literal["update", "insert"] = Field(..., description="Tipo de operação")


class EmbeddingDeleteRequest(CamelModel):
    """Request de remoção de embedding."""

    id: int = Field(..., description="ID da nota")


class EmbeddingAttachmentRequest(CamelModel):
    """Request de indexação de anexo."""

    id: int = Field(..., description="ID da nota dona do anexo")
    file_path: str = Field(..., min_length=1, description="Caminho do arquivo (ex.: /api/file/text.pdf)")


class EmbeddingResult(CamelModel):
    """Resultado estruturado de uma operação de embedding."""

    ok: bool
    error: str | None = None
    code: str | None = None


class SimilarNote(CamelModel):
    """Nota retornada pela busca por similaridade."""

    id: int
    content: str
    entity_type: str = "note"
    source: str = ""
    similarity: float


class RebuildState(str, Enum):
    """Estados do job de rebuild."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    FAILED = "failed"


class RebuildItemResult(CamelModel):
    """Resultado do processamento de uma nota (ou de um anexo dela) no rebuild."""

    note_id: int
    attachment: str | None = Field(default=None, description="Caminho do anexo; vazio para a própria nota")
    status: Literal["success", "skip", "error"]
    error: str | None = None
    code: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RebuildProgress(CamelModel):
    """Snapshot do progresso do rebuild."""

    current: int = 0
    total: int = 0
    percentage: int = 0
    is_running: bool = False
    state: RebuildState = RebuildState.IDLE
    results: list[RebuildItemResult] = Field(default_factory=list)
    error: str | None = None
    last_update: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RebuildStartRequest(CamelModel):
    """Request para iniciar o rebuild."""

    force: bool = Field(default=True, description="Reprocessa notas que já têm embedding atual")


class SuccessResponse(CamelModel):
    """Resposta simples de sucesso."""

    success: bool
