"""create_blinko_ai_tables

Revision ID: 4b2f9c1d7a10
Revises:
Create Date: 2026-10-17 10:12:31.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b2f9c1d7a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    op.create_table(
        'notes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('tags', postgresql.ARRAY(sa.String()), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'attachments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('note_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('path', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['note_id'], ['notes.id'], ondelete='CASCADE'),
    )
    op.create_index(op.f('ix_attachments_note_id'), 'attachments', ['note_id'], unique=False)

    op.create_table(
        'note_embeddings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('note_id', sa.Integer(), nullable=False),
        sa.Column('entity_type', sa.String(20), nullable=False, server_default='note'),
        sa.Column('source', sa.String(500), nullable=False, server_default=''),
        sa.Column('embedding', Vector(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('embedding_model', sa.String(200), nullable=False, server_default=''),
        sa.Column('source_created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('note_id', 'entity_type', 'source', name='uq_note_embeddings_entity'),
    )
    op.create_index(op.f('ix_note_embeddings_note_id'), 'note_embeddings', ['note_id'], unique=False)

    op.create_table(
        'configs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('config', postgresql.JSONB(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index(op.f('ix_configs_key'), 'configs', ['key'], unique=True)

    op.create_table(
        'conversations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(200), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('note_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['note_id'], ['notes.id'], ondelete='CASCADE'),
    )
    op.create_index(op.f('ix_comments_note_id'), 'comments', ['note_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_comments_note_id'), table_name='comments')
    op.drop_table('comments')
    op.drop_table('conversations')
    op.drop_index(op.f('ix_configs_key'), table_name='configs')
    op.drop_table('configs')
    op.drop_index(op.f('ix_note_embeddings_note_id'), table_name='note_embeddings')
    op.drop_table('note_embeddings')
    op.drop_index(op.f('ix_attachments_note_id'), table_name='attachments')
    op.drop_table('attachments')
    op.drop_table('notes')
