"""Services de IA do Blinko."""

from blinko.services.completion_service import CompletionService
from blinko.services.embedding_service import EmbeddingService
from blinko.services.rebuild_job import RebuildEmbeddingJob, RebuildScope

__all__ = [
    "CompletionService",
    "EmbeddingService",
    "RebuildEmbeddingJob",
    "RebuildScope",
]
