"""Pydantic schemas para validação."""

from .ai import (
    AICommentRequest,
    ChatMessage,
    CommentResponse,
    CompletionRequest,
    ContentRequest,
    ConversationResponse,
    NoteResponse,
    SummarizeTitleRequest,
    WritingRequest,
)
from .config import AIConfig
from .embedding import (
    EmbeddingAttachmentRequest,
    EmbeddingDeleteRequest,
    EmbeddingResult,
    EmbeddingUpsertRequest,
    RebuildItemResult,
    RebuildProgress,
    RebuildStartRequest,
    RebuildState,
    SimilarNote,
    SuccessResponse,
)
from .provider import ConnectionTestRequest, FetchModelsRequest, ModelCatalog, ModelOption

__all__ = [
    "AIConfig",
    "AICommentRequest",
    "ChatMessage",
    "CommentResponse",
    "CompletionRequest",
    "ContentRequest",
    "ConversationResponse",
    "NoteResponse",
    "SummarizeTitleRequest",
    "WritingRequest",
    "EmbeddingAttachmentRequest",
    "EmbeddingDeleteRequest",
    "EmbeddingResult",
    "EmbeddingUpsertRequest",
    "RebuildItemResult",
    "RebuildProgress",
    "RebuildStartRequest",
    "RebuildState",
    "SimilarNote",
    "SuccessResponse",
    "FetchModelsRequest",
    "ModelCatalog",
    "ModelOption",
    "ConnectionTestRequest",
]
