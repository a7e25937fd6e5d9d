import uuid
from typing import List

from pydantic import BaseModel, Field


class BlobWarning(BaseModel):
    """A blob that could not be removed; the metadata change still went through."""

    storage_key: str
    message: str


class DeleteResult(BaseModel):
    entity: str
    entity_id: uuid.UUID
    deleted: bool
    miniatures_deleted: int = 0
    photos_deleted: int = 0
    links_deleted: int = 0
    warnings: List[BlobWarning] = Field(default_factory=list)


class ReconcileReport(BaseModel):
    dry_run: bool = False
    blobs_scanned: int = 0
    photos_scanned: int = 0
    orphaned_blobs: List[str] = Field(default_factory=list)
    deleted_blobs: List[str] = Field(default_factory=list)
    skipped_recent: List[str] = Field(default_factory=list)
    dangling_photo_ids: List[uuid.UUID] = Field(default_factory=list)
    failures: List[BlobWarning] = Field(default_factory=list)
