"""initial source watch schema

Revision ID: 5e1a9c2d7b40
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5e1a9c2d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

extract_trigger = sa.Enum('chat', 'add_sources', 'refresh', name='extract_trigger')


def upgrade() -> None:
    op.create_table(
        'sources',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('url'),
    )
    op.create_table(
        'chat_queries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('full_page', sa.Boolean(), nullable=False),
        sa.Column('router_reason', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'chat_query_extract_params',
        sa.Column('chat_query_id', sa.Integer(), nullable=False),
        sa.Column('objective', sa.Text(), nullable=False),
        sa.Column('search_queries', sa.JSON(), nullable=True),
        sa.Column('excerpts', sa.JSON(), nullable=False),
        sa.Column('full_content', sa.JSON(), nullable=False),
        sa.Column('fetch_policy', sa.JSON(), nullable=True),
        sa.Column('parallel_beta_header', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['chat_query_id'], ['chat_queries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('chat_query_id'),
    )
    op.create_table(
        'extract_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('chat_query_id', sa.Integer(), nullable=True),
        sa.Column('trigger', extract_trigger, nullable=False),
        sa.Column('parallel_extract_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('warnings', sa.JSON(), nullable=True),
        sa.Column('usage', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['chat_query_id'], ['chat_queries.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_extract_runs_chat_query_id'), 'extract_runs', ['chat_query_id'], unique=False)
    op.create_table(
        'extracted_pages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('extract_run_id', sa.Integer(), nullable=False),
        sa.Column('extracted_at', sa.DateTime(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('publish_date', sa.String(), nullable=True),
        sa.Column('excerpts', sa.JSON(), nullable=True),
        sa.Column('full_content_md', sa.Text(), nullable=True),
        sa.Column('content_sha256', sa.String(length=64), nullable=True),
        sa.Column('error_type', sa.String(), nullable=True),
        sa.Column('http_status_code', sa.Integer(), nullable=True),
        sa.Column('error_content', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['extract_run_id'], ['extract_runs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_extracted_pages_extract_run_id'), 'extracted_pages', ['extract_run_id'], unique=False)
    op.create_index('ix_extracted_pages_source_extracted_at', 'extracted_pages', ['source_id', 'extracted_at'], unique=False)
    op.create_table(
        'source_latest',
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('latest_extracted_page_id', sa.Integer(), nullable=False),
        sa.Column('latest_extracted_at', sa.DateTime(), nullable=False),
        sa.Column('latest_title', sa.String(), nullable=True),
        sa.Column('latest_has_full_content', sa.Boolean(), nullable=False),
        sa.Column('latest_objective', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['latest_extracted_page_id'], ['extracted_pages.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('source_id'),
    )


def downgrade() -> None:
    op.drop_table('source_latest')
    op.drop_index('ix_extracted_pages_source_extracted_at', table_name='extracted_pages')
    op.drop_index(op.f('ix_extracted_pages_extract_run_id'), table_name='extracted_pages')
    op.drop_table('extracted_pages')
    op.drop_index(op.f('ix_extract_runs_chat_query_id'), table_name='extract_runs')
    op.drop_table('extract_runs')
    extract_trigger.drop(op.get_bind(), checkfirst=True)
    op.drop_table('chat_query_extract_params')
    op.drop_table('chat_queries')
    op.drop_table('sources')
