"""
Miniature repository.

A miniature always belongs to an existing project. Progress may move to
any stage in either direction; every change stamps a fresh ``updated_at``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from minitracker.db import models, schemas
from minitracker.db.database import Database
from minitracker.db.repo_utils import (
    check_expected_version,
    coerce_uuid,
    guarded_update,
    to_schema,
    update_values,
    validate_input,
)
from minitracker.db.repositories.cascade import purge_miniatures
from minitracker.db.repositories.projects import get_project_row
from minitracker.errors import NotFoundError, ValidationError
from minitracker.utils.enums import MiniatureType, ProgressStatus, parse_enum

logger = logging.getLogger(__name__)


def get_miniature_row(db: Session, miniature_id: uuid.UUID) -> models.Miniature:
    row = db.get(models.Miniature, miniature_id)
    if row is None:
        raise NotFoundError("Miniature", miniature_id)
    return row


class MiniatureRepository:
    def __init__(self, database: Database, storage):
        self._database = database
        self._storage = storage

    def create(self, data: schemas.MiniatureCreate | dict) -> schemas.Miniature:
        payload = validate_input(schemas.MiniatureCreate, data)
        stamp = models.now_utc()
        with self._database.session() as db:
            get_project_row(db, payload.project_id)
            row = models.Miniature(
                project_id=payload.project_id,
                name=payload.name,
                miniature_type=payload.miniature_type.value,
                progress_status=payload.progress_status.value,
                notes=payload.notes,
                created_at=stamp,
                updated_at=stamp,
            )
            db.add(row)
            db.flush()
            miniature = to_schema(schemas.Miniature, row)
        logger.info("Created miniature %s in project %s", miniature.id, miniature.project_id)
        return miniature

    def get(self, miniature_id: Any) -> schemas.Miniature:
        mid = coerce_uuid(miniature_id)
        with self._database.session() as db:
            return to_schema(schemas.Miniature, get_miniature_row(db, mid))

    def list(
        self,
        project_id: Any = None,
        miniature_type: MiniatureType | str | None = None,
        progress_status: ProgressStatus | str | None = None,
    ) -> List[schemas.Miniature]:
        """Miniatures in creation order, optionally narrowed by project, type and stage."""
        kind = parse_enum(MiniatureType, miniature_type, "miniature_type")
        status = parse_enum(ProgressStatus, progress_status, "progress_status")
        with self._database.session() as db:
            q = db.query(models.Miniature)
            if project_id is not None:
                q = q.filter(models.Miniature.project_id == coerce_uuid(project_id, "project_id"))
            if kind is not None:
                q = q.filter(models.Miniature.miniature_type == kind.value)
            if status is not None:
                q = q.filter(models.Miniature.progress_status == status.value)
            rows = q.order_by(models.Miniature.created_at.asc(), models.Miniature.id.asc()).all()
            return [to_schema(schemas.Miniature, row) for row in rows]

    def update(
        self,
        miniature_id: Any,
        changes: schemas.MiniatureUpdate | dict,
        expected_updated_at: Optional[datetime] = None,
    ) -> schemas.Miniature:
        mid = coerce_uuid(miniature_id)
        payload = validate_input(schemas.MiniatureUpdate, changes)
        values = update_values(payload)
        with self._database.session() as db:
            row = get_miniature_row(db, mid)
            check_expected_version("Miniature", mid, row.updated_at, expected_updated_at)
            values["updated_at"] = models.now_utc()
            guarded_update(db, models.Miniature, row, values, "Miniature")
            miniature = to_schema(schemas.Miniature, row)
        if "progress_status" in values:
            logger.info("Miniature %s progress -> %s", mid, values["progress_status"])
        return miniature

    def set_progress(
        self,
        miniature_id: Any,
        status: ProgressStatus | str,
        expected_updated_at: Optional[datetime] = None,
    ) -> schemas.Miniature:
        parsed = parse_enum(ProgressStatus, status, "progress_status")
        if parsed is None:
            raise ValidationError("progress_status", "is required")
        return self.update(miniature_id, {"progress_status": parsed}, expected_updated_at)

    def delete(self, miniature_id: Any) -> schemas.DeleteResult:
        mid = coerce_uuid(miniature_id)
        with self._database.session() as db:
            get_miniature_row(db, mid)
            outcome = purge_miniatures(db, self._storage, [mid])
        logger.info("Deleted miniature %s with %d photos", mid, outcome.photos)
        return schemas.DeleteResult(
            entity="miniature",
            entity_id=mid,
            deleted=True,
            miniatures_deleted=outcome.miniatures,
            photos_deleted=outcome.photos,
            links_deleted=outcome.links,
            warnings=outcome.warnings,
        )
