"""Camada de acesso a dados usada pelo núcleo de IA."""

from .config_store import ConfigStore
from .embedding_store import EmbeddingStore
from .note_store import CommentStore, ConversationStore, NoteStore

__all__ = [
    "ConfigStore",
    "EmbeddingStore",
    "NoteStore",
    "ConversationStore",
    "CommentStore",
]
