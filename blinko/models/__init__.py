"""SQLAlchemy models."""

from .attachment import Attachment
from .comment import Comment
from .config import Config
from .conversation import Conversation
from .note import Note
from .note_embedding import NoteEmbedding

__all__ = [
    "Note",
    "Attachment",
    "NoteEmbedding",
    "Config",
    "Conversation",
    "Comment",
]
