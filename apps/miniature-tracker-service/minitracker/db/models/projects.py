import uuid
from sqlalchemy import Column, String, Text, Uuid, Index, CheckConstraint
from .base import Base, now_utc
from ..types import UTCDateTime


class Project(Base):
    __tablename__ = 'projects'
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    game_system = Column(String(50), nullable=False)
    army = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=now_utc)
    updated_at = Column(UTCDateTime(), nullable=False, default=now_utc)

    __table_args__ = (
        Index('idx_projects_game_system', 'game_system'),
        Index('idx_projects_listing', 'game_system', 'army', 'created_at'),
        CheckConstraint(
            "game_system in ('age_of_sigmar','horus_heresy','warhammer_40k')",
            name='ck_projects_game_system',
        ),
    )
