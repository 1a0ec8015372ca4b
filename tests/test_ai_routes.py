"""Testes das rotas de IA (tags, emojis, títulos, comentários e escrita)."""

import json

import pytest
from httpx import AsyncClient
from langchain_core.messages import AIMessageChunk, SystemMessage

from blinko.agents.writing import WRITING_PROMPTS, WritingAgent


@pytest.mark.asyncio
async def test_health_and_root(app, client: AsyncClient):
    """Testa os endpoints de status."""
    health = await client.get("/health")
    root = await client.get("/")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert root.json()["app"] == "Blinko"

    app.state.ready = False
    starting = await client.get("/health")
    assert starting.status_code == 503
    assert starting.json()["status"] == "starting"


@pytest.mark.asyncio
async def test_auto_tag_uses_existing_tags(client: AsyncClient, chat_model, note_store):
    """Testa autoTag: tags existentes no prompt e resposta separada por vírgulas."""
    note_store.add("Compras do mês", tags=["Casa/Mercado"])
    chat_model.replies = ["#Trabalho/Reunião, #Todo, , "]

    response = await client.post("/api/ai/autoTag", json={"content": "Reunião de planejamento"})

    assert response.status_code == 200
    assert response.json() == ["#Trabalho/Reunião", "#Todo"]
    prompt = chat_model.calls[-1][-1].content
    assert "#Casa/Mercado" in prompt
    assert "Reunião de planejamento" in prompt


@pytest.mark.asyncio
async def test_auto_tag_uses_custom_prompt(client: AsyncClient, chat_model, ai_config):
    ai_config.ai_tags_prompt = "Use apenas tags em português"
    chat_model.replies = ["#Ideias"]

    await client.post("/api/ai/autoTag", json={"content": "Uma ideia"})

    system = chat_model.calls[-1][0]
    assert isinstance(system, SystemMessage)
    assert system.content == "Use apenas tags em português"


@pytest.mark.asyncio
async def test_auto_emoji(client: AsyncClient, chat_model):
    chat_model.replies = ["🎉, 🎂 ,"]

    response = await client.post("/api/ai/autoEmoji", json={"content": "Festa de aniversário"})

    assert response.json() == ["🎉", "🎂"]


@pytest.mark.asyncio
async def test_auto_tag_without_provider_is_configuration_error(client: AsyncClient, ai_config):
    ai_config.provider = ""

    response = await client.post("/api/ai/autoTag", json={"content": "Qualquer"})

    assert response.status_code == 400
    assert response.json()["code"] == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_summarize_conversation_title(client: AsyncClient, chat_model, conversation_store):
    """Testa a geração e o salvamento do título da conversa."""
    conversation_store.add(7, title="Nova conversa")
    chat_model.replies = ['"Roteiro de viagem a Portugal"']

    response = await client.post(
        "/api/ai/summarizeConversationTitle",
        json={
            "conversationId": 7,
            "conversations": [
                {"role": "user", "content": "Quero visitar Lisboa e Porto"},
                {"role": "assistant", "content": "Ótima escolha!"},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == 7
    assert data["title"] == "Roteiro de viagem a Portugal"
    assert conversation_store.conversations[7].title == "Roteiro de viagem a Portugal"
    assert "Quero visitar Lisboa e Porto" in chat_model.calls[-1][-1].content


@pytest.mark.asyncio
async def test_summarize_unknown_conversation_is_not_found(client: AsyncClient):
    response = await client.post(
        "/api/ai/summarizeConversationTitle",
        json={"conversationId": 404, "conversations": [{"role": "user", "content": "Oi"}]},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_ai_comment_is_stored_on_note(client: AsyncClient, chat_model, note_store, comment_store):
    """Testa que o comentário da IA é salvo na nota."""
    note = note_store.add("Estudar para a prova de cálculo")
    chat_model.replies = ["Que tal revisar limites primeiro?"]

    response = await client.post(
        "/api/ai/AIComment",
        json={"content": note.content, "noteId": note.id},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["noteId"] == note.id
    assert data["author"] == "Blinko AI"
    assert data["content"] == "Que tal revisar limites primeiro?"
    assert len(comment_store.comments) == 1


@pytest.mark.asyncio
async def test_ai_comment_on_unknown_note_is_not_found(client: AsyncClient, comment_store):
    response = await client.post("/api/ai/AIComment", json={"content": "Oi", "noteId": 123})

    assert response.status_code == 404
    assert comment_store.comments == []


@pytest.mark.asyncio
async def test_writing_streams_ndjson(client: AsyncClient, chat_model):
    """Testa o assistente de escrita em streaming."""
    chat_model.rounds = [[AIMessageChunk(content="Texto "), AIMessageChunk(content="polido.")]]

    response = await client.post(
        "/api/ai/writing",
        json={"question": "Melhore o texto", "type": "polish", "content": "texto ruim"},
    )

    assert response.status_code == 200
    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert "".join(line["chunk"]["textDelta"] for line in lines) == "Texto polido."
    sent = chat_model.calls[0]
    assert sent[0].content == WRITING_PROMPTS["polish"]
    assert "texto ruim" in sent[-1].content


@pytest.mark.asyncio
async def test_writing_unexpected_failure_ends_with_internal_error(client: AsyncClient, monkeypatch):
    """Testa que erro inesperado no meio do stream vira a última linha NDJSON."""

    async def broken_write(self, question, content=None):
        yield "Primeira parte"
        raise RuntimeError("falha inesperada")

    monkeypatch.setattr(WritingAgent, "write", broken_write)

    response = await client.post("/api/ai/writing", json={"question": "Escreva algo"})

    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert lines[0]["chunk"]["textDelta"] == "Primeira parte"
    assert lines[-1] == {"error": "Erro interno do servidor", "code": "INTERNAL_ERROR"}


@pytest.mark.asyncio
async def test_writing_rejects_unknown_mode(client: AsyncClient):
    response = await client.post("/api/ai/writing", json={"question": "x", "type": "rewrite"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_writing_without_provider_is_configuration_error(client: AsyncClient, ai_config):
    ai_config.provider = "Inexistente"

    response = await client.post("/api/ai/writing", json={"question": "Escreva algo"})

    assert response.status_code == 400
    assert response.json()["code"] == "CONFIGURATION_ERROR"
