"""Job em background que reconstrói os embeddings de todas as notas e anexos."""

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable

from blinko.schemas.embedding import RebuildItemResult, RebuildProgress, RebuildState
from blinko.services.embedding_service import EmbeddingService
from blinko.stores.embedding_store import EmbeddingStore
from blinko.stores.note_store import NoteStore

logger = logging.getLogger(__name__)

# Erros que tornam inútil continuar o rebuild
UNRECOVERABLE_CODES = {"CONFIGURATION_ERROR"}


@dataclass
class RebuildScope:
    """Dependências do job, com sessão de banco própria (fora do ciclo de requisição)."""

    notes: NoteStore
    embeddings: EmbeddingStore
    service: EmbeddingService
    db: Any = None


ScopeFactory = Callable[[], AbstractAsyncContextManager[RebuildScope]]


class RebuildEmbeddingJob:
    """
    Controlador do rebuild de embeddings.

    Estados: idle -> running -> {completed, stopped, failed}. Só existe um
    rebuild em execução por instância; a aplicação mantém uma única instância
    em app.state. O progresso é o único estado mutável compartilhado e é lido
    por cópia.
    """

    def __init__(self, scope_factory: ScopeFactory):
        """
        Inicializa o controlador.

        Args:
            scope_factory: Cria o escopo (stores + service) usado durante um rebuild.
        """
        self._scope_factory = scope_factory
        self._progress = RebuildProgress()
        self._lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        # Trocado a cada mudança do progresso; quem acompanha espera no atual
        self._changed = asyncio.Event()

    @property
    def state(self) -> RebuildState:
        return self._progress.state

    @property
    def is_running(self) -> bool:
        return self._progress.state == RebuildState.RUNNING

    def progress(self) -> RebuildProgress:
        """Retorna um snapshot (cópia) do progresso atual."""
        return self._progress.model_copy(deep=True)

    async def start(self, force: bool = True) -> bool:
        """
        Inicia um rebuild, se nenhum estiver em execução.

        Args:
            force: Reprocessa também notas cujo embedding já está atualizado.

        Returns:
            bool: True se um novo rebuild foi iniciado; False se já havia um
            em execução (nesse caso nada é alterado).
        """
        async with self._lock:
            if self.is_running:
                logger.info("🔄 Rebuild já em execução, ignorando novo pedido")
                return False

            async with self._scope_factory() as scope:
                total = await scope.notes.count_notes()

            self._stop_event = asyncio.Event()
            self._progress = RebuildProgress(
                total=total,
                is_running=True,
                state=RebuildState.RUNNING,
            )
            self._task = asyncio.create_task(self._run(force), name="rebuild-embeddings")
            logger.info(f"🚀 Rebuild de embeddings iniciado (force={force}, total={total})")
            return True

    async def stop(self) -> bool:
        """
        Pede o cancelamento cooperativo do rebuild.

        O job termina a nota em andamento e passa para stopped; quem chama deve
        consultar progress() para ver a transição.

        Returns:
            bool: True se havia um rebuild em execução.
        """
        if not self.is_running:
            return False
        self._stop_event.set()
        logger.info("⏹️ Parada do rebuild solicitada")
        return True

    async def follow(self, force: bool = True) -> AsyncIterator[dict[str, Any]]:
        """
        Inicia um rebuild (ou acompanha o que já está em execução) e transmite
        os resultados à medida que são produzidos.

        Fechar o gerador não interrompe o rebuild.

        Args:
            force: Repassado a start() quando não há rebuild em execução.

        Yields:
            dict: {"result": ...} para cada item e, por último, {"progress": ...}.
        """
        await self.start(force=force)
        sent = 0
        while True:
            changed = self._changed
            snapshot = self.progress()
            for result in snapshot.results[sent:]:
                yield {"result": result.model_dump(by_alias=True, mode="json")}
            sent = len(snapshot.results)
            if not snapshot.is_running:
                yield {"progress": snapshot.model_dump(by_alias=True, mode="json")}
                return
            await changed.wait()

    async def wait(self) -> RebuildProgress:
        """Aguarda o término do rebuild em execução (se houver)."""
        if self._task is not None:
            await asyncio.shield(self._task)
        return self.progress()

    async def shutdown(self) -> None:
        """Para o rebuild e aguarda o término (usado no desligamento da aplicação)."""
        await self.stop()
        if self._task is not None:
            await self._task

    async def _run(self, force: bool) -> None:
        try:
            async with self._scope_factory() as scope:
                notes = await scope.notes.list_notes()
                current_versions = {} if force else await scope.embeddings.source_times()
                self._touch(total=len(notes))

                for note in notes:
                    if self._stop_event.is_set():
                        self._finish(RebuildState.STOPPED)
                        return

                    failure = await self._process_note(scope, note, current_versions, force)
                    self._advance()

                    if failure is not None:
                        self._finish(RebuildState.FAILED, error=failure.error)
                        return

                    await asyncio.sleep(0)

            attempted = [r for r in self._progress.results if r.status != "skip"]
            if attempted and all(r.code == "CONNECTIVITY_ERROR" for r in attempted):
                self._finish(RebuildState.FAILED, error="Provedor de embeddings inacessível para todas as notas")
            else:
                self._finish(RebuildState.COMPLETED)
        except asyncio.CancelledError:
            self._finish(RebuildState.STOPPED)
            raise
        except Exception as e:
            logger.exception(f"❌ Rebuild de embeddings falhou: {e}")
            self._finish(RebuildState.FAILED, error=str(e))

    async def _process_note(
        self,
        scope: RebuildScope,
        note: Any,
        current_versions: dict[int, datetime],
        force: bool,
    ) -> RebuildItemResult | None:
        """
        Indexa a nota e os seus anexos, registrando um resultado para cada um.

        Returns:
            RebuildItemResult | None: O resultado que torna inútil continuar, se houver.
        """
        result = await self._process(scope, note, current_versions, force)
        self._append(result)
        if result.code in UNRECOVERABLE_CODES:
            return result

        for attachment in note.attachments:
            result = await self._process_attachment(scope, note, attachment.path, force)
            self._append(result)
            if result.code in UNRECOVERABLE_CODES:
                return result
        return None

    async def _process(
        self,
        scope: RebuildScope,
        note: Any,
        current_versions: dict[int, datetime],
        force: bool,
    ) -> RebuildItemResult:
        """Indexa uma nota; falhas viram resultado do item e não abortam o rebuild."""
        if not (note.content or "").strip():
            return RebuildItemResult(note_id=note.id, status="skip")

        version = note.updated_at or note.created_at
        embedded_at = current_versions.get(note.id)
        if not force and embedded_at is not None and version is not None and embedded_at >= version:
            return RebuildItemResult(note_id=note.id, status="skip")

        kind = "update" if note.id in current_versions else "insert"
        try:
            result = await scope.service.upsert(note.id, note.content, kind, version)
        except Exception as e:
            logger.error(f"❌ Erro inesperado ao indexar nota {note.id}: {e}")
            if scope.db is not None:
                await scope.db.rollback()
            return RebuildItemResult(note_id=note.id, status="error", error=str(e), code="INTERNAL_ERROR")

        if result.ok:
            return RebuildItemResult(note_id=note.id, status="success")
        return RebuildItemResult(note_id=note.id, status="error", error=result.error, code=result.code)

    async def _process_attachment(self, scope: RebuildScope, note: Any, path: str, force: bool) -> RebuildItemResult:
        """Reindexa um anexo sob o id da nota; sem force, pula o que já está na versão atual."""
        version = note.updated_at or note.created_at
        if not force:
            existing = await scope.embeddings.get(note.id, "attachment", path)
            if existing is not None and version is not None and existing.source_created_at >= version:
                return RebuildItemResult(note_id=note.id, attachment=path, status="skip")

        try:
            result = await scope.service.insert_attachment(note.id, path)
        except Exception as e:
            logger.error(f"❌ Erro inesperado ao indexar anexo {path} da nota {note.id}: {e}")
            if scope.db is not None:
                await scope.db.rollback()
            return RebuildItemResult(
                note_id=note.id, attachment=path, status="error", error=str(e), code="INTERNAL_ERROR"
            )

        if result.ok:
            return RebuildItemResult(note_id=note.id, attachment=path, status="success")
        return RebuildItemResult(
            note_id=note.id, attachment=path, status="error", error=result.error, code=result.code
        )

    def _touch(self, **changes: Any) -> None:
        for key, value in changes.items():
            setattr(self._progress, key, value)
        self._progress.last_update = datetime.now(timezone.utc)
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    def _append(self, result: RebuildItemResult) -> None:
        self._progress.results.append(result)
        self._touch()

    def _advance(self) -> None:
        """Conta mais uma nota processada (com os seus anexos)."""
        current = self._progress.current + 1
        total = max(self._progress.total, current)
        self._touch(
            current=current,
            total=total,
            percentage=round(current / total * 100),
        )

    def _finish(self, state: RebuildState, error: str | None = None) -> None:
        self._touch(state=state, is_running=False, error=error)
        succeeded = sum(1 for r in self._progress.results if r.status == "success")
        failed = sum(1 for r in self._progress.results if r.status == "error")
        logger.info(
            f"🏁 Rebuild terminou como {state.value}: {succeeded} indexadas, "
            f"{failed} com erro, {self._progress.current}/{self._progress.total} processadas"
        )
