"""initial schema: projects, miniatures, painting recipes, photos

Revision ID: 0001
Revises:
Create Date: 2025-07-12 09:14:03.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'projects',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('game_system', sa.String(length=50), nullable=False),
        sa.Column('army', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "game_system in ('age_of_sigmar','horus_heresy','warhammer_40k')",
            name='ck_projects_game_system',
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_projects_game_system', 'projects', ['game_system'], unique=False)
    op.create_index('idx_projects_listing', 'projects', ['game_system', 'army', 'created_at'], unique=False)

    op.create_table(
        'miniatures',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('project_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('miniature_type', sa.String(length=20), nullable=False),
        sa.Column('progress_status', sa.String(length=20), nullable=False, server_default='unpainted'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("miniature_type in ('troop','character')", name='ck_miniatures_type'),
        sa.CheckConstraint(
            "progress_status in ('unpainted','primed','basecoated','detailed','completed')",
            name='ck_miniatures_progress_status',
        ),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_miniatures_project_id', 'miniatures', ['project_id'], unique=False)

    op.create_table(
        'painting_recipes',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('miniature_type', sa.String(length=20), nullable=False),
        sa.Column('steps', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('paints_used', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('techniques', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("miniature_type in ('troop','character')", name='ck_painting_recipes_type'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_recipes_miniature_type', 'painting_recipes', ['miniature_type'], unique=False)

    op.create_table(
        'photos',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('miniature_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('storage_key', sa.String(length=500), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('file_size > 0', name='ck_photos_file_size'),
        sa.CheckConstraint(
            "mime_type in ('image/jpeg','image/png','image/webp','image/heic')",
            name='ck_photos_mime_type',
        ),
        sa.ForeignKeyConstraint(['miniature_id'], ['miniatures.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_key', name='uq_photos_storage_key'),
    )
    op.create_index('idx_photos_miniature_id', 'photos', ['miniature_id', 'created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_photos_miniature_id', table_name='photos')
    op.drop_table('photos')
    op.drop_index('idx_recipes_miniature_type', table_name='painting_recipes')
    op.drop_table('painting_recipes')
    op.drop_index('idx_miniatures_project_id', table_name='miniatures')
    op.drop_table('miniatures')
    op.drop_index('idx_projects_listing', table_name='projects')
    op.drop_index('idx_projects_game_system', table_name='projects')
    op.drop_table('projects')
