import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from minitracker.utils.enums import GameSystem, ProgressStatus
from .fields import OptionalText, RequiredName, reject_explicit_nulls


class ProjectBase(BaseModel):
    name: RequiredName
    game_system: GameSystem
    army: RequiredName
    description: Optional[OptionalText] = None


class ProjectCreate(ProjectBase):
    model_config = ConfigDict(extra="forbid")


class ProjectUpdate(BaseModel):
    name: Optional[RequiredName] = None
    game_system: Optional[GameSystem] = None
    army: Optional[RequiredName] = None
    description: Optional[OptionalText] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _required_fields_stay_set(self):
        reject_explicit_nulls(self, ("name", "game_system", "army"))
        return self


class Project(BaseModel):
    id: uuid.UUID
    name: str
    game_system: GameSystem
    army: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ProjectProgress(BaseModel):
    """Painting progress across every miniature of a project."""

    project_id: uuid.UUID
    miniature_count: int
    status_counts: Dict[ProgressStatus, int]
    completed_count: int
    completion_percentage: float
