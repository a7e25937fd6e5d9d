import uuid
from sqlalchemy import Column, String, Text, Uuid, ForeignKey, Index, CheckConstraint
from .base import Base, now_utc
from ..types import UTCDateTime


class Miniature(Base):
    __tablename__ = 'miniatures'
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    miniature_type = Column(String(20), nullable=False)
    progress_status = Column(String(20), nullable=False, default='unpainted')
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=now_utc)
    updated_at = Column(UTCDateTime(), nullable=False, default=now_utc)

    __table_args__ = (
        Index('idx_miniatures_project_id', 'project_id'),
        CheckConstraint("miniature_type in ('troop','character')", name='ck_miniatures_type'),
        CheckConstraint(
            "progress_status in ('unpainted','primed','basecoated','detailed','completed')",
            name='ck_miniatures_progress_status',
        ),
    )
