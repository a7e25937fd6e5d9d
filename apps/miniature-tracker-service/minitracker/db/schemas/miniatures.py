import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from minitracker.utils.enums import MiniatureType, ProgressStatus
from .fields import OptionalText, RequiredName, reject_explicit_nulls


class MiniatureBase(BaseModel):
    name: RequiredName
    miniature_type: MiniatureType
    notes: Optional[OptionalText] = None


class MiniatureCreate(MiniatureBase):
    project_id: uuid.UUID
    progress_status: ProgressStatus = ProgressStatus.unpainted
    model_config = ConfigDict(extra="forbid")


class MiniatureUpdate(BaseModel):
    name: Optional[RequiredName] = None
    miniature_type: Optional[MiniatureType] = None
    progress_status: Optional[ProgressStatus] = None
    notes: Optional[OptionalText] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _required_fields_stay_set(self):
        reject_explicit_nulls(self, ("name", "miniature_type", "progress_status"))
        return self


class Miniature(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    miniature_type: MiniatureType
    progress_status: ProgressStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @property
    def progress_percentage(self) -> int:
        return self.progress_status.progress_percentage
