"""
Cascade removal of miniatures and everything hanging off them.

Blobs go first, then rows, all while the caller's transaction is open.
Blob failures become warnings; the row deletion still happens and the
leftover blob is picked up later by photo reconciliation.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Sequence

from sqlalchemy.orm import Session

from minitracker.db import models, schemas
from minitracker.db.repo_utils import delete_blobs

logger = logging.getLogger(__name__)


@dataclass
class PurgeOutcome:
    miniatures: int = 0
    photos: int = 0
    links: int = 0
    warnings: List[schemas.BlobWarning] = field(default_factory=list)


def photo_keys_for_miniatures(db: Session, miniature_ids: Sequence[uuid.UUID]) -> List[str]:
    if not miniature_ids:
        return []
    rows = (
        db.query(models.Photo.storage_key)
        .filter(models.Photo.miniature_id.in_(miniature_ids))
        .order_by(models.Photo.created_at)
        .all()
    )
    return [key for (key,) in rows]


def purge_miniatures(db: Session, storage, miniature_ids: Sequence[uuid.UUID]) -> PurgeOutcome:
    """Delete the given miniatures with their photos (blobs and rows) and recipe links."""
    outcome = PurgeOutcome()
    if not miniature_ids:
        return outcome

    keys = photo_keys_for_miniatures(db, miniature_ids)
    outcome.warnings = delete_blobs(storage, keys)

    outcome.photos = (
        db.query(models.Photo)
        .filter(models.Photo.miniature_id.in_(miniature_ids))
        .delete(synchronize_session=False)
    )
    outcome.links = (
        db.query(models.MiniatureRecipe)
        .filter(models.MiniatureRecipe.miniature_id.in_(miniature_ids))
        .delete(synchronize_session=False)
    )
    outcome.miniatures = (
        db.query(models.Miniature)
        .filter(models.Miniature.id.in_(miniature_ids))
        .delete(synchronize_session=False)
    )
    if outcome.warnings:
        logger.warning(
            "Cascade removed %d photo rows but %d blobs could not be deleted",
            outcome.photos,
            len(outcome.warnings),
        )
    return outcome
