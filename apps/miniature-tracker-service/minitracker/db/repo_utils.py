"""
Helpers shared by the repositories.

Input coercion into pydantic schemas, row to read-schema conversion,
optimistic-concurrency guarded updates and best-effort blob removal.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from minitracker.db import schemas
from minitracker.errors import ConflictError, StorageError, ValidationError

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)


def coerce_uuid(value: Any, field: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(field, f"not a valid identifier: {value!r}") from None


def validate_input(schema_cls: Type[S], data: Any) -> S:
    """Accept either a schema instance or raw field values."""
    if isinstance(data, schema_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from None


def to_schema(schema_cls: Type[S], row: Any) -> S:
    """Convert an ORM row, refusing to hand back a partially valid entity."""
    try:
        return schema_cls.model_validate(row, from_attributes=True)
    except PydanticValidationError as exc:
        logger.error("Stored %s row failed validation: %s", schema_cls.__name__, exc)
        raise ValidationError.from_pydantic(exc) from None


def update_values(payload: BaseModel) -> Dict[str, Any]:
    """Column values for the fields explicitly present in a partial update."""
    values = payload.model_dump(exclude_unset=True)
    for key, value in list(values.items()):
        if isinstance(value, Enum):
            values[key] = value.value
    return values


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def check_expected_version(entity: str, entity_id: uuid.UUID, current: datetime, expected: Optional[datetime]) -> None:
    if expected is None:
        return
    if _as_utc(current) != _as_utc(expected):
        raise ConflictError(
            f"{entity} {entity_id} was modified at {current.isoformat()}; "
            f"expected {_as_utc(expected).isoformat()}"
        )


def guarded_update(db: Session, model, row, values: Dict[str, Any], entity: str) -> None:
    """Write ``values`` only if the row still carries the ``updated_at`` we read.

    Losing the race to another writer surfaces as ``ConflictError`` instead
    of silently overwriting their change.
    """
    count = (
        db.query(model)
        .filter(model.id == row.id, model.updated_at == row.updated_at)
        .update(values, synchronize_session=False)
    )
    if count != 1:
        raise ConflictError(f"{entity} {row.id} was modified concurrently; reload and retry")
    db.refresh(row)


def delete_blobs(storage, storage_keys: Iterable[str]) -> List[schemas.BlobWarning]:
    """Delete each blob, collecting failures as warnings instead of raising."""
    warnings: List[schemas.BlobWarning] = []
    for key in storage_keys:
        try:
            storage.delete(key)
        except StorageError as exc:
            logger.warning("Failed to delete blob %s: %s", key, exc)
            warnings.append(schemas.BlobWarning(storage_key=key, message=exc.message))
    return warnings
