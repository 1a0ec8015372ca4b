"""Agentes de IA."""

from .base_agent import BaseAgent
from .chat import ChatAgent
from .comment import CommentAgent
from .factory import AgentKind, AiModelFactory, Embedder
from .summarizer import SummarizeAgent
from .tagging import EmojiAgent, TagAgent
from .writing import WritingAgent

__all__ = [
    "BaseAgent",
    "ChatAgent",
    "CommentAgent",
    "SummarizeAgent",
    "TagAgent",
    "EmojiAgent",
    "WritingAgent",
    "AgentKind",
    "AiModelFactory",
    "Embedder",
]
