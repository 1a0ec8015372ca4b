"""Configuração de fixtures para testes."""

import asyncio
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, AsyncGenerator, AsyncIterator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult

from blinko.agents.factory import AiModelFactory
from blinko.core.dependencies import (
    get_comment_store,
    get_config_store,
    get_conversation_store,
    get_embedding_store,
    get_note_store,
    get_provider_registry,
)
from blinko.main import create_application
from blinko.providers.base import ProviderAdapter, model_options
from blinko.providers.registry import ProviderRegistry
from blinko.schemas.config import AIConfig
from blinko.schemas.embedding import SimilarNote
from blinko.schemas.provider import ModelOption
from blinko.services.embedding_service import EmbeddingService
from blinko.services.rebuild_job import RebuildEmbeddingJob, RebuildScope
from blinko.utils.attachments import AttachmentReader

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Stores em memória
# ---------------------------------------------------------------------------


@dataclass
class FakeNote:
    id: int
    content: str
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = BASE_TIME
    updated_at: datetime | None = BASE_TIME
    attachments: list[SimpleNamespace] = field(default_factory=list)


class InMemoryNoteStore:
    """Mesmo contrato do NoteStore, sem banco."""

    def __init__(self) -> None:
        self.notes: dict[int, FakeNote] = {}
        self._next_id = 1

    def add(
        self,
        content: str,
        tags: list[str] | None = None,
        created_at: datetime | None = BASE_TIME,
        updated_at: datetime | None = BASE_TIME,
    ) -> FakeNote:
        note = FakeNote(self._next_id, content, tags or [], created_at, updated_at)
        self.notes[note.id] = note
        self._next_id += 1
        return note

    def attach(self, note: FakeNote, path: str) -> SimpleNamespace:
        attachment = SimpleNamespace(note_id=note.id, name=path.rsplit("/", 1)[-1], path=path)
        note.attachments.append(attachment)
        return attachment

    async def get_note(self, note_id: int) -> FakeNote | None:
        return self.notes.get(note_id)

    async def list_notes(self) -> list[FakeNote]:
        return [self.notes[key] for key in sorted(self.notes)]

    async def count_notes(self) -> int:
        return len(self.notes)

    async def create_note(self, content: str, tags: list[str] | None = None) -> FakeNote:
        now = datetime.now(timezone.utc)
        return self.add(content, tags, created_at=now, updated_at=now)

    async def get_all_tags(self) -> list[str]:
        tags = {f"#{tag.lstrip('#')}" for note in self.notes.values() for tag in note.tags if tag}
        return sorted(tags)


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryEmbeddingStore:
    """Mesmo contrato do EmbeddingStore, sem pgvector."""

    def __init__(self) -> None:
        self.records: dict[tuple[int, str, str], SimpleNamespace] = {}

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
        self.records[(note_id, entity_type, source)] = SimpleNamespace(
            note_id=note_id,
            entity_type=entity_type,
            source=source,
            embedding=list(vector),
            content=content,
            embedding_model=model,
            source_created_at=source_created_at,
        )

    async def delete(self, note_id: int) -> int:
        keys = [key for key in self.records if key[0] == note_id]
        for key in keys:
            del self.records[key]
        return len(keys)

    async def get(self, note_id: int, entity_type: str = "note", source: str = "") -> SimpleNamespace | None:
        return self.records.get((note_id, entity_type, source))

    async def source_times(self) -> dict[int, datetime]:
        return {
            record.note_id: record.source_created_at
            for record in self.records.values()
            if record.entity_type == "note"
        }

    async def search(
        self,
        vector: list[float],
        model: str,
        limit: int = 3,
        min_score: float = 0.3,
    ) -> list[SimilarNote]:
        scored = [
            (cosine(vector, record.embedding), record)
            for record in self.records.values()
            if record.embedding_model == model
        ]
        scored.sort(key=lambda item: item[0], reverse=True)
        best: dict[int, SimilarNote] = {}
        for score, record in scored:
            if score < min_score or record.note_id in best:
                continue
            best[record.note_id] = SimilarNote(
                id=record.note_id,
                content=record.content,
                entity_type=record.entity_type,
                source=record.source,
                similarity=round(score, 4),
            )
        return list(best.values())[:limit]


class InMemoryConfigStore:
    def __init__(self, config: AIConfig) -> None:
        self.config = config

    async def get_ai_config(self) -> AIConfig:
        return self.config.model_copy()


class InMemoryConversationStore:
    def __init__(self) -> None:
        self.conversations: dict[int, SimpleNamespace] = {}

    def add(self, conversation_id: int, title: str = "") -> SimpleNamespace:
        conversation = SimpleNamespace(
            id=conversation_id, title=title, created_at=BASE_TIME, updated_at=BASE_TIME
        )
        self.conversations[conversation_id] = conversation
        return conversation

    async def get(self, conversation_id: int) -> SimpleNamespace | None:
        return self.conversations.get(conversation_id)

    async def update_title(self, conversation: SimpleNamespace, title: str) -> SimpleNamespace:
        conversation.title = title[:200]
        return conversation


class InMemoryCommentStore:
    def __init__(self) -> None:
        self.comments: list[SimpleNamespace] = []

    async def create(self, note_id: int, content: str, author: str) -> SimpleNamespace:
        comment = SimpleNamespace(
            id=len(self.comments) + 1,
            note_id=note_id,
            content=content,
            author=author,
            created_at=BASE_TIME,
        )
        self.comments.append(comment)
        return comment


# ---------------------------------------------------------------------------
# Provedor e modelo de chat falsos
# ---------------------------------------------------------------------------


class ScriptedChatModel(BaseChatModel):
    """
    Chat model com respostas roteirizadas.

    rounds: uma lista de chunks por chamada de stream.
    replies: respostas completas para chamadas sem streaming.
    """

    rounds: list[Any] = []
    replies: list[str] = []
    error: Any = None
    calls: list[Any] = []

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools: Any, **kwargs: Any) -> "ScriptedChatModel":
        return self

    def _reply(self, messages: list[BaseMessage]) -> ChatResult:
        self.calls.append(list(messages))
        text = self.replies.pop(0) if self.replies else ""
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=text))])

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return self._reply(messages)

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return self._reply(messages)

    async def _astream(self, messages, stop=None, run_manager=None, **kwargs) -> AsyncIterator[ChatGenerationChunk]:
        self.calls.append(list(messages))
        if self.rounds:
            chunks = self.rounds.pop(0)
        else:
            chunks = [AIMessageChunk(content=self.replies.pop(0) if self.replies else "")]
        for chunk in chunks:
            yield ChatGenerationChunk(message=chunk)
        if self.error is not None:
            raise self.error


def fake_vector(text: str) -> list[float]:
    """Vetor determinístico: frequência das vogais (+1 para nunca ser nulo)."""
    lowered = text.lower()
    return [lowered.count(vowel) + 1.0 for vowel in "aeiou"]


class FakeAdapter(ProviderAdapter):
    """Provedor falso registrado como 'Fake'."""

    name = "Fake"
    default_endpoint = "http://fake"

    def __init__(self, llm: ScriptedChatModel) -> None:
        super().__init__()
        self.llm = llm
        self.embed_calls: list[str] = []
        self.fail_with: Exception | None = None
        self.fail_on: Callable[[str], bool] | None = None
        self.gate: asyncio.Event | None = None

    async def test_connection(self, endpoint: str | None, api_key: str | None = None) -> bool:
        return True

    async def list_models(self, endpoint: str | None, api_key: str | None = None) -> list[ModelOption]:
        return model_options(["fake-chat", "fake-embed"])

    async def embed(self, endpoint: str | None, text: str, model: str, api_key: str | None = None) -> list[float]:
        self.embed_calls.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None and (self.fail_on is None or self.fail_on(text)):
            raise self.fail_with
        return fake_vector(text)

    def chat_model(self, config: AIConfig, model: str | None = None) -> BaseChatModel:
        return self.llm


async def wait_until(condition: Callable[[], bool], attempts: int = 200) -> None:
    """Cede o loop até a condição valer (para sincronizar com tasks em background)."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condição não atingida")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def ai_config() -> AIConfig:
    return AIConfig(
        provider="Fake",
        ai_api_endpoint="http://fake",
        ai_model="fake-chat",
        embedding_model="fake-embed",
    )


@pytest.fixture
def chat_model() -> ScriptedChatModel:
    return ScriptedChatModel()


@pytest.fixture
def adapter(chat_model: ScriptedChatModel) -> FakeAdapter:
    return FakeAdapter(chat_model)


@pytest.fixture
def registry(adapter: FakeAdapter) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register("Fake", adapter)
    return registry


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def embedding_store() -> InMemoryEmbeddingStore:
    return InMemoryEmbeddingStore()


@pytest.fixture
def config_store(ai_config: AIConfig) -> InMemoryConfigStore:
    return InMemoryConfigStore(ai_config)


@pytest.fixture
def conversation_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def comment_store() -> InMemoryCommentStore:
    return InMemoryCommentStore()


@pytest.fixture
def factory(config_store: InMemoryConfigStore, registry: ProviderRegistry) -> AiModelFactory:
    return AiModelFactory(config_store, registry)


@pytest.fixture
def embedding_service(
    factory: AiModelFactory,
    embedding_store: InMemoryEmbeddingStore,
    note_store: InMemoryNoteStore,
    tmp_path,
) -> EmbeddingService:
    return EmbeddingService(
        factory,
        embedding_store,
        note_store,
        attachments=AttachmentReader(upload_dir=tmp_path, max_chars=500),
    )


@pytest.fixture
async def rebuild_job(
    note_store: InMemoryNoteStore,
    embedding_store: InMemoryEmbeddingStore,
    embedding_service: EmbeddingService,
) -> AsyncGenerator[RebuildEmbeddingJob, None]:
    """Controlador de rebuild isolado, ligado aos stores em memória."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[RebuildScope]:
        yield RebuildScope(notes=note_store, embeddings=embedding_store, service=embedding_service)

    job = RebuildEmbeddingJob(scope)
    yield job
    await job.shutdown()


@pytest.fixture
def app(
    note_store,
    embedding_store,
    config_store,
    conversation_store,
    comment_store,
    registry,
    rebuild_job,
):
    """Aplicação com as dependências de banco e provedor sobrescritas."""
    application = create_application(rebuild_job=rebuild_job)
    application.dependency_overrides.update(
        {
            get_note_store: lambda: note_store,
            get_embedding_store: lambda: embedding_store,
            get_config_store: lambda: config_store,
            get_conversation_store: lambda: conversation_store,
            get_comment_store: lambda: comment_store,
            get_provider_registry: lambda: registry,
        }
    )
    application.state.ready = True
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Cria um cliente HTTP para testes."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def later(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)
