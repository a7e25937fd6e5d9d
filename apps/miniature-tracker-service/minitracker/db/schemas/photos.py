import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .fields import RequiredName


class PhotoCreate(BaseModel):
    """Metadata supplied alongside the photo bytes."""

    miniature_id: uuid.UUID
    filename: RequiredName
    mime_type: str = Field(min_length=1, max_length=100)
    model_config = ConfigDict(extra="forbid")


class Photo(BaseModel):
    id: uuid.UUID
    miniature_id: uuid.UUID
    filename: str
    storage_key: str
    file_size: int
    mime_type: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
