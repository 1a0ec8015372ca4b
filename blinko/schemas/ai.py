"""Schemas Pydantic das operações de IA."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from blinko.schemas.base import CamelModel


class ChatMessage(CamelModel):
    """Mensagem de uma conversa."""

    role: Literal["user", "system", "assistant", "tool"] = Field(..., description="Papel da mensagem")
    content: str = Field(..., description="Conteúdo da mensagem")


class CompletionRequest(CamelModel):
    """Request de completion com streaming."""

    question: str = Field(..., min_length=1, description="Pergunta do usuário")
    conversations: list[ChatMessage] = Field(default_factory=list, description="Histórico da conversa")
    with_tools: bool = False
    with_online: bool = False
    with_rag: bool = Field(default=True, alias="withRAG")
    system_prompt: str | None = None


class WritingRequest(CamelModel):
    """Request do assistente de escrita."""

    question: str = Field(..., min_length=1)
    type: Literal["expand", "polish", "custom"] = "custom"
    content: str | None = None


class ContentRequest(CamelModel):
    """Request com o conteúdo de uma nota (autoTag, autoEmoji)."""

    content: str = Field(..., min_length=1)


class SummarizeTitleRequest(CamelModel):
    """Request para gerar o título de uma conversa."""

    conversations: list[ChatMessage] = Field(..., min_length=1)
    conversation_id: int


class ConversationResponse(CamelModel):
    """Conversa com título atualizado."""

    id: int
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AICommentRequest(CamelModel):
    """Request de comentário gerado pela IA."""

    content: str = Field(..., min_length=1)
    note_id: int


class CommentResponse(CamelModel):
    """Comentário criado."""

    id: int
    note_id: int
    content: str
    author: str
    created_at: datetime | None = None


class NoteResponse(CamelModel):
    """Nota retornada ao cliente (ex.: notas criadas por ferramentas)."""

    id: int
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
