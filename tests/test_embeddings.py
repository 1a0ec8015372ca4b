"""Testes do serviço de embeddings."""

import pytest
from httpx import AsyncClient

from blinko.utils.errors import ConnectivityError
from tests.conftest import fake_vector, later


@pytest.mark.asyncio
async def test_upsert_then_delete_leaves_no_record(embedding_service, embedding_store, note_store):
    """Testa que upsert seguido de delete não deixa registro da nota."""
    note = note_store.add("Reunião com o time de produto")

    result = await embedding_service.upsert_note(note.id, note.content, "insert")
    assert result.ok is True
    assert await embedding_store.get(note.id) is not None

    deleted = await embedding_service.delete(note.id)
    assert deleted.ok is True
    assert await embedding_store.get(note.id) is None

    # Idempotente
    assert (await embedding_service.delete(note.id)).ok is True


@pytest.mark.asyncio
async def test_upsert_stores_model_and_source_time(embedding_service, embedding_store, note_store):
    """Testa que o registro guarda o modelo e a versão da nota."""
    note = note_store.add("Ideias para o blog", updated_at=later(30))

    await embedding_service.upsert_note(note.id, note.content, "insert")

    record = await embedding_store.get(note.id)
    assert record.embedding == fake_vector("Ideias para o blog")
    assert record.embedding_model == "fake-embed"
    assert record.source_created_at == later(30)


@pytest.mark.asyncio
async def test_upsert_note_without_creation_timestamp_is_not_found(embedding_service, note_store, adapter):
    """Testa que nota sem data de criação retorna NOT_FOUND sem chamar o provedor."""
    note = note_store.add("Rascunho", created_at=None)

    result = await embedding_service.upsert_note(note.id, note.content, "insert")

    assert result.ok is False
    assert result.code == "NOT_FOUND"
    assert adapter.embed_calls == []


@pytest.mark.asyncio
async def test_upsert_unknown_note_is_not_found(embedding_service):
    result = await embedding_service.upsert_note(999, "qualquer coisa", "update")

    assert result.ok is False
    assert result.code == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_with_same_content_reuses_vector(embedding_service, note_store, adapter):
    """Testa que update sem mudança de conteúdo não chama o provedor de novo."""
    note = note_store.add("Lista de compras")

    await embedding_service.upsert_note(note.id, note.content, "insert")
    await embedding_service.upsert_note(note.id, note.content, "update")
    await embedding_service.upsert_note(note.id, "Lista de compras da semana", "update")

    assert adapter.embed_calls == ["Lista de compras", "Lista de compras da semana"]


@pytest.mark.asyncio
async def test_provider_failure_is_returned_not_raised(embedding_service, note_store, adapter):
    """Testa que falhas do provedor viram resultado estruturado."""
    note = note_store.add("Nota qualquer")
    adapter.fail_with = ConnectivityError("Fake")

    result = await embedding_service.upsert_note(note.id, note.content, "insert")

    assert result.ok is False
    assert result.code == "CONNECTIVITY_ERROR"
    assert "Fake" in result.error


@pytest.mark.asyncio
async def test_missing_embedding_model_is_configuration_error(embedding_service, note_store, ai_config):
    note = note_store.add("Nota qualquer")
    ai_config.embedding_model = ""

    result = await embedding_service.upsert_note(note.id, note.content, "insert")

    assert result.ok is False
    assert result.code == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_blank_content_is_validation_error(embedding_service, note_store, adapter):
    note = note_store.add("   ")

    result = await embedding_service.upsert_note(note.id, note.content, "insert")

    assert result.code == "VALIDATION_ERROR"
    assert adapter.embed_calls == []


@pytest.mark.asyncio
async def test_insert_attachment_indexes_file_under_note(embedding_service, embedding_store, note_store, tmp_path):
    """Testa a indexação de um anexo de texto sob o id da nota."""
    note = note_store.add("Nota com anexo")
    (tmp_path / "ata.md").write_text("# Ata\n\nDecidimos lançar em março.", encoding="utf-8")

    await embedding_service.upsert_note(note.id, note.content, "insert")
    result = await embedding_service.insert_attachment(note.id, "/api/file/ata.md")

    assert result.ok is True
    record = await embedding_store.get(note.id, "attachment", "/api/file/ata.md")
    assert record.content == "# Ata\n\nDecidimos lançar em março."

    # Remover a nota remove o embedding dela e dos anexos
    await embedding_service.delete(note.id)
    assert embedding_store.records == {}


@pytest.mark.asyncio
async def test_attachment_is_truncated(embedding_service, embedding_store, note_store, tmp_path):
    note = note_store.add("Nota com anexo longo")
    (tmp_path / "longo.txt").write_text("a" * 2000, encoding="utf-8")

    await embedding_service.insert_attachment(note.id, "api/file/longo.txt")

    record = await embedding_store.get(note.id, "attachment", "api/file/longo.txt")
    assert len(record.content) == 500


@pytest.mark.asyncio
async def test_attachment_path_traversal_is_rejected(embedding_service, note_store, adapter):
    """Testa que caminhos fora do diretório de uploads são recusados."""
    note = note_store.add("Nota")

    result = await embedding_service.insert_attachment(note.id, "/api/file/../../etc/passwd")

    assert result.ok is False
    assert result.code == "VALIDATION_ERROR"
    assert adapter.embed_calls == []


@pytest.mark.asyncio
async def test_missing_attachment_and_unsupported_type(embedding_service, note_store, tmp_path):
    note = note_store.add("Nota")
    (tmp_path / "foto.png").write_bytes(b"\x89PNG")

    missing = await embedding_service.insert_attachment(note.id, "/api/file/nao-existe.pdf")
    unsupported = await embedding_service.insert_attachment(note.id, "/api/file/foto.png")

    assert missing.code == "NOT_FOUND"
    assert unsupported.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_search_returns_most_similar_note(embedding_service, note_store):
    """Testa a busca por similaridade usando o embedder configurado."""
    first = note_store.add("aaaa aaaa")
    second = note_store.add("uuuu iiii")
    await embedding_service.upsert_note(first.id, first.content, "insert")
    await embedding_service.upsert_note(second.id, second.content, "insert")

    results = await embedding_service.search("aaaa aaaa", limit=1)

    assert [note.id for note in results] == [first.id]
    assert results[0].similarity == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_embedding_routes(client: AsyncClient, note_store, embedding_store):
    """Testa embeddingUpsert e embeddingDelete via HTTP."""
    note = note_store.add("Plano de estudos")

    upsert = await client.post(
        "/api/ai/embeddingUpsert",
        json={"id": note.id, "content": note.content, "type": "insert"},
    )
    assert upsert.status_code == 200
    assert upsert.json() == {"ok": True}
    assert await embedding_store.get(note.id) is not None

    delete = await client.post("/api/ai/embeddingDelete", json={"id": note.id})
    assert delete.json() == {"ok": True}
    assert await embedding_store.get(note.id) is None


@pytest.mark.asyncio
async def test_embedding_upsert_route_reports_not_found(client: AsyncClient, note_store):
    note = note_store.add("Sem data", created_at=None)

    response = await client.post(
        "/api/ai/embeddingUpsert",
        json={"id": note.id, "content": note.content, "type": "update"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is False
    assert data["code"] == "NOT_FOUND"
