import uuid
from sqlalchemy import Column, String, Text, Uuid, ForeignKey, Index, CheckConstraint
from .base import Base, now_utc
from ..types import UTCDateTime, StringList


class PaintingRecipe(Base):
    __tablename__ = 'painting_recipes'
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    miniature_type = Column(String(20), nullable=False)
    # JSON-encoded string lists
    steps = Column(StringList(), nullable=False, default=list)
    paints_used = Column(StringList(), nullable=False, default=list)
    techniques = Column(StringList(), nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=now_utc)
    updated_at = Column(UTCDateTime(), nullable=False, default=now_utc)

    __table_args__ = (
        Index('idx_recipes_miniature_type', 'miniature_type'),
        CheckConstraint("miniature_type in ('troop','character')", name='ck_painting_recipes_type'),
    )


class MiniatureRecipe(Base):
    __tablename__ = 'miniature_recipes'
    miniature_id = Column(
        Uuid(as_uuid=True), ForeignKey('miniatures.id', ondelete='CASCADE'), primary_key=True
    )
    recipe_id = Column(
        Uuid(as_uuid=True), ForeignKey('painting_recipes.id', ondelete='CASCADE'), primary_key=True
    )
    created_at = Column(UTCDateTime(), nullable=False, default=now_utc)

    __table_args__ = (
        Index('idx_miniature_recipes_recipe_id', 'recipe_id'),
    )
