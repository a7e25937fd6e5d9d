"""link painting recipes to miniatures

Revision ID: 0002
Revises: 0001
Create Date: 2025-07-19 17:42:51.602377

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'miniature_recipes',
        sa.Column('miniature_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('recipe_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['miniature_id'], ['miniatures.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipe_id'], ['painting_recipes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('miniature_id', 'recipe_id'),
    )
    op.create_index('idx_miniature_recipes_recipe_id', 'miniature_recipes', ['recipe_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_miniature_recipes_recipe_id', table_name='miniature_recipes')
    op.drop_table('miniature_recipes')
