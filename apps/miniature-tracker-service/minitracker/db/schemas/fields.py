"""Reusable constrained field types for input schemas."""
from __future__ import annotations

from typing import Annotated, Iterable, List

from pydantic import AfterValidator, BaseModel, Field

NAME_MAX_LENGTH = 255
NOTES_MAX_LENGTH = 1000
STEP_MAX_LENGTH = 2000


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty or whitespace")
    return value


def _unique_in_order(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


RequiredName = Annotated[str, Field(min_length=1, max_length=NAME_MAX_LENGTH), AfterValidator(_not_blank)]
OptionalText = Annotated[str, Field(max_length=NOTES_MAX_LENGTH)]
ListItem = Annotated[str, Field(min_length=1, max_length=NAME_MAX_LENGTH), AfterValidator(_not_blank)]
StepText = Annotated[str, Field(min_length=1, max_length=STEP_MAX_LENGTH), AfterValidator(_not_blank)]
StringSet = Annotated[List[ListItem], AfterValidator(_unique_in_order)]


def reject_explicit_nulls(model: BaseModel, fields: Iterable[str]) -> None:
    """Raise when a partial update sets a required column to ``None``."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be cleared")
