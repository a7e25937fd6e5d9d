"""
Project repository.

Projects own miniatures; deleting one removes its miniatures, their photos
(metadata and blobs) and their recipe links. Recipes themselves survive.
"""
from __future__ import annotations

import logging
import uuid
from collections import Counter
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
from minitracker.errors import NotFoundError
from minitracker.utils.enums import GameSystem, ProgressStatus, parse_enum

logger = logging.getLogger(__name__)


def get_project_row(db: Session, project_id: uuid.UUID) -> models.Project:
    row = db.get(models.Project, project_id)
    if row is None:
        raise NotFoundError("Project", project_id)
    return row


class ProjectRepository:
    def __init__(self, database: Database, storage):
        self._database = database
        self._storage = storage

    def create(self, data: schemas.ProjectCreate | dict) -> schemas.Project:
        payload = validate_input(schemas.ProjectCreate, data)
        stamp = models.now_utc()
        with self._database.session() as db:
            row = models.Project(
                name=payload.name,
                game_system=payload.game_system.value,
                army=payload.army,
                description=payload.description,
                created_at=stamp,
                updated_at=stamp,
            )
            db.add(row)
            db.flush()
            project = to_schema(schemas.Project, row)
        logger.info("Created project %s (%s)", project.id, project.game_system.value)
        return project

    def get(self, project_id: Any) -> schemas.Project:
        pid = coerce_uuid(project_id)
        with self._database.session() as db:
            return to_schema(schemas.Project, get_project_row(db, pid))

    def list(self, game_system: GameSystem | str | None = None) -> List[schemas.Project]:
        """Projects ordered by game system, then army, newest first within an army."""
        system = parse_enum(GameSystem, game_system, "game_system")
        with self._database.session() as db:
            q = db.query(models.Project)
            if system is not None:
                q = q.filter(models.Project.game_system == system.value)
            rows = q.order_by(
                models.Project.game_system.asc(),
                models.Project.army.asc(),
                models.Project.created_at.desc(),
                models.Project.id.asc(),
            ).all()
            return [to_schema(schemas.Project, row) for row in rows]

    def update(
        self,
        project_id: Any,
        changes: schemas.ProjectUpdate | dict,
        expected_updated_at: Optional[datetime] = None,
    ) -> schemas.Project:
        pid = coerce_uuid(project_id)
        payload = validate_input(schemas.ProjectUpdate, changes)
        values = update_values(payload)
        with self._database.session() as db:
            row = get_project_row(db, pid)
            check_expected_version("Project", pid, row.updated_at, expected_updated_at)
            values["updated_at"] = models.now_utc()
            guarded_update(db, models.Project, row, values, "Project")
            project = to_schema(schemas.Project, row)
        logger.info("Updated project %s fields=%s", pid, sorted(k for k in values if k != "updated_at"))
        return project

    def delete(self, project_id: Any) -> schemas.DeleteResult:
        pid = coerce_uuid(project_id)
        with self._database.session() as db:
            row = get_project_row(db, pid)
            miniature_ids = [
                mid for (mid,) in db.query(models.Miniature.id).filter(models.Miniature.project_id == pid).all()
            ]
            outcome = purge_miniatures(db, self._storage, miniature_ids)
            db.delete(row)
        logger.info(
            "Deleted project %s with %d miniatures and %d photos",
            pid,
            outcome.miniatures,
            outcome.photos,
        )
        return schemas.DeleteResult(
            entity="project",
            entity_id=pid,
            deleted=True,
            miniatures_deleted=outcome.miniatures,
            photos_deleted=outcome.photos,
            links_deleted=outcome.links,
            warnings=outcome.warnings,
        )

    def progress(self, project_id: Any) -> schemas.ProjectProgress:
        """Per-stage miniature counts and the mean progress percentage."""
        pid = coerce_uuid(project_id)
        with self._database.session() as db:
            get_project_row(db, pid)
            rows = (
                db.query(models.Miniature.progress_status)
                .filter(models.Miniature.project_id == pid)
                .all()
            )
        statuses = [parse_enum(ProgressStatus, status, "progress_status") for (status,) in rows]
        counts = Counter(statuses)
        total = len(statuses)
        percentage = (
            sum(status.progress_percentage for status in statuses) / total if total else 0.0
        )
        return schemas.ProjectProgress(
            project_id=pid,
            miniature_count=total,
            status_counts={status: counts.get(status, 0) for status in ProgressStatus},
            completed_count=counts.get(ProgressStatus.completed, 0),
            completion_percentage=round(percentage, 2),
        )
