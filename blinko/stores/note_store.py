"""Acesso a notas, anexos, conversas e comentários."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blinko.models.comment import Comment
from blinko.models.conversation import Conversation
from blinko.models.note import Note


class NoteStore:
    """Operações de leitura/escrita de notas usadas pelo núcleo de IA."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_note(self, note_id: int) -> Note | None:
        """Busca uma nota pelo ID."""
        result = await self.db.execute(select(Note).where(Note.id == note_id))
        return result.scalar_one_or_none()

    async def list_notes(self) -> list[Note]:
        """Lista todas as notas em ordem de criação, com os anexos carregados."""
        result = await self.db.execute(
            select(Note).options(selectinload(Note.attachments)).order_by(Note.id)
        )
        return list(result.scalars().all())

    async def count_notes(self) -> int:
        """Conta as notas do corpus."""
        result = await self.db.execute(select(func.count()).select_from(Note))
        return result.scalar() or 0

    async def create_note(self, content: str, tags: list[str] | None = None) -> Note:
        """
        Cria uma nota.

        Args:
            content: Conteúdo da nota.
            tags: Tags da nota (caminhos como Pai/Filho).

        Returns:
            Note: Nota criada.
        """
        note = Note(content=content, tags=tags or [])
        self.db.add(note)
        await self.db.commit()
        await self.db.refresh(note)
        return note

    async def get_all_tags(self) -> list[str]:
        """
        Obtém todas as tags únicas, com o caminho hierárquico completo.

        Returns:
            list[str]: Lista ordenada de tags (ex.: #Pai/Filho).
        """
        result = await self.db.execute(select(Note.tags))
        unique_tags = set()
        for tags_list in result.scalars().all():
            if tags_list:
                unique_tags.update(f"#{tag.lstrip('#')}" for tag in tags_list if tag)
        return sorted(unique_tags)


class ConversationStore:
    """Acesso a conversas com a IA."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, conversation_id: int) -> Conversation | None:
        result = await self.db.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def update_title(self, conversation: Conversation, title: str) -> Conversation:
        conversation.title = title[:200]
        await self.db.commit()
        await self.db.refresh(conversation)
        return conversation


class CommentStore:
    """Acesso a comentários de notas."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, note_id: int, content: str, author: str) -> Comment:
        comment = Comment(note_id=note_id, content=content, author=author)
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment
