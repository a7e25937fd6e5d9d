import uuid
from sqlalchemy import Column, String, Integer, Uuid, ForeignKey, Index, CheckConstraint, UniqueConstraint
from .base import Base, now_utc
from ..types import UTCDateTime


class Photo(Base):
    """Photo metadata; the bytes live in the blob store under ``storage_key``."""

    __tablename__ = 'photos'
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    miniature_id = Column(Uuid(as_uuid=True), ForeignKey('miniatures.id', ondelete='CASCADE'), nullable=False)
    filename = Column(String(255), nullable=False)
    storage_key = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=now_utc)

    __table_args__ = (
        Index('idx_photos_miniature_id', 'miniature_id', 'created_at'),
        UniqueConstraint('storage_key', name='uq_photos_storage_key'),
        CheckConstraint('file_size > 0', name='ck_photos_file_size'),
        CheckConstraint(
            "mime_type in ('image/jpeg','image/png','image/webp','image/heic')",
            name='ck_photos_mime_type',
        ),
    )
