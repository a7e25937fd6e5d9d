import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from minitracker.utils.enums import MiniatureType
from .fields import OptionalText, RequiredName, StepText, StringSet, reject_explicit_nulls


class RecipeBase(BaseModel):
    name: RequiredName
    miniature_type: MiniatureType
    steps: List[StepText] = Field(default_factory=list)
    paints_used: StringSet = Field(default_factory=list)
    techniques: StringSet = Field(default_factory=list)
    notes: Optional[OptionalText] = None


class RecipeCreate(RecipeBase):
    model_config = ConfigDict(extra="forbid")


class RecipeUpdate(BaseModel):
    name: Optional[RequiredName] = None
    miniature_type: Optional[MiniatureType] = None
    steps: Optional[List[StepText]] = None
    paints_used: Optional[StringSet] = None
    techniques: Optional[StringSet] = None
    notes: Optional[OptionalText] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _required_fields_stay_set(self):
        reject_explicit_nulls(self, ("name", "miniature_type", "steps", "paints_used", "techniques"))
        return self


class Recipe(BaseModel):
    id: uuid.UUID
    name: str
    miniature_type: MiniatureType
    steps: List[str]
    paints_used: List[str]
    techniques: List[str]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RecipeLink(BaseModel):
    miniature_id: uuid.UUID
    recipe_id: uuid.UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
