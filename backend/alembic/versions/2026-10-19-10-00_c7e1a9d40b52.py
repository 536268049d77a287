"""slide library and knowledge base tables with vector search functions

Revision ID: c7e1a9d40b52
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
import sqlmodel
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c7e1a9d40b52'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSIONS = 1536


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    # Slide library
    op.create_table(
        'presentations',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('file_name', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('total_slides', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_presentations_id'), 'presentations', ['id'], unique=False)

    op.create_table(
        'slides',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('presentation_id', sa.Uuid(), nullable=False),
        sa.Column('slide_number', sa.Integer(), nullable=False),
        sa.Column('slide_type', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('bullet_points', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['presentation_id'], ['presentations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute(f'ALTER TABLE slides ADD COLUMN embedding vector({EMBEDDING_DIMENSIONS})')
    op.create_index(op.f('ix_slides_id'), 'slides', ['id'], unique=False)
    op.create_index(op.f('ix_slides_presentation_id'), 'slides', ['presentation_id'], unique=False)

    # Knowledge base
    op.create_table(
        'knowledge_base_documents',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('document_type', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column('source', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_knowledge_base_documents_id'), 'knowledge_base_documents', ['id'], unique=False)

    op.create_table(
        'knowledge_base_chunks',
        sa.Column('id', sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['document_id'], ['knowledge_base_documents.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute(f'ALTER TABLE knowledge_base_chunks ADD COLUMN embedding vector({EMBEDDING_DIMENSIONS})')
    op.create_index(op.f('ix_knowledge_base_chunks_id'), 'knowledge_base_chunks', ['id'], unique=False)
    op.create_index(op.f('ix_knowledge_base_chunks_document_id'), 'knowledge_base_chunks', ['document_id'], unique=False)

    # Cosine-similarity search
    op.execute(f"""
        CREATE OR REPLACE FUNCTION match_slides(
            query_embedding vector({EMBEDDING_DIMENSIONS}),
            match_threshold float,
            match_count int
        )
        RETURNS TABLE (
            id uuid,
            presentation_id uuid,
            slide_number int,
            slide_type text,
            title text,
            content text,
            bullet_points json,
            similarity float
        )
        LANGUAGE sql STABLE
        AS $$
            SELECT
                s.id,
                s.presentation_id,
                s.slide_number,
                s.slide_type::text,
                s.title,
                s.content,
                s.bullet_points,
                1 - (s.embedding <=> query_embedding) AS similarity
            FROM slides s
            WHERE s.embedding IS NOT NULL
              AND 1 - (s.embedding <=> query_embedding) > match_threshold
            ORDER BY s.embedding <=> query_embedding
            LIMIT match_count
        $$
    """)
    op.execute(f"""
        CREATE OR REPLACE FUNCTION search_knowledge_base(
            query_embedding vector({EMBEDDING_DIMENSIONS}),
            match_threshold float,
            match_count int
        )
        RETURNS TABLE (
            id uuid,
            document_id uuid,
            document_title text,
            content text,
            metadata json,
            similarity float
        )
        LANGUAGE sql STABLE
        AS $$
            SELECT
                c.id,
                c.document_id,
                d.title::text AS document_title,
                c.content,
                c.metadata,
                1 - (c.embedding <=> query_embedding) AS similarity
            FROM knowledge_base_chunks c
            JOIN knowledge_base_documents d ON d.id = c.document_id
            WHERE c.embedding IS NOT NULL
              AND 1 - (c.embedding <=> query_embedding) > match_threshold
            ORDER BY c.embedding <=> query_embedding
            LIMIT match_count
        $$
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute('DROP FUNCTION IF EXISTS search_knowledge_base(vector, float, int)')
    op.execute('DROP FUNCTION IF EXISTS match_slides(vector, float, int)')
    op.drop_index(op.f('ix_knowledge_base_chunks_document_id'), table_name='knowledge_base_chunks')
    op.drop_index(op.f('ix_knowledge_base_chunks_id'), table_name='knowledge_base_chunks')
    op.drop_table('knowledge_base_chunks')
    op.drop_index(op.f('ix_knowledge_base_documents_id'), table_name='knowledge_base_documents')
    op.drop_table('knowledge_base_documents')
    op.drop_index(op.f('ix_slides_presentation_id'), table_name='slides')
    op.drop_index(op.f('ix_slides_id'), table_name='slides')
    op.drop_table('slides')
    op.drop_index(op.f('ix_presentations_id'), table_name='presentations')
    op.drop_table('presentations')
