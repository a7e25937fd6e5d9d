"""
Photo repository.

A photo is two records that must agree: a blob in the storage backend and
a metadata row pointing at it through ``storage_key``.

Creation writes the blob first and the row second; if the row cannot be
inserted the fresh blob is removed again. Deletion removes the row first
and the blob second, reporting (not raising) blob failures. Whatever those
best-effort steps leave behind is found by ``reconcile()``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, UTC
from pathlib import PurePath
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from minitracker.db import models, schemas
from minitracker.db.database import Database
from minitracker.db.repo_utils import coerce_uuid, delete_blobs, to_schema, validate_input
from minitracker.db.repositories.miniatures import get_miniature_row
from minitracker.errors import NotFoundError, StorageError, ValidationError
from minitracker.storage.base import StorageAdapter
from minitracker.utils.media import DEFAULT_MAX_PHOTO_BYTES, allowed_mime_types, normalize_mime_type

logger = logging.getLogger(__name__)

DEFAULT_RECONCILE_MIN_AGE = timedelta(minutes=15)


def get_photo_row(db: Session, photo_id: uuid.UUID) -> models.Photo:
    row = db.get(models.Photo, photo_id)
    if row is None:
        raise NotFoundError("Photo", photo_id)
    return row


class PhotoRepository:
    def __init__(
        self,
        database: Database,
        storage: StorageAdapter,
        max_bytes: int = DEFAULT_MAX_PHOTO_BYTES,
        allow_heic: bool = False,
    ):
        self._database = database
        self._storage = storage
        self.max_bytes = max_bytes
        self.allowed_mime_types = allowed_mime_types(allow_heic)

    def _check_mime_type(self, mime_type: str) -> str:
        normalized = normalize_mime_type(mime_type)
        if normalized not in self.allowed_mime_types:
            allowed = ", ".join(sorted(self.allowed_mime_types))
            raise ValidationError("mime_type", f"unsupported type {mime_type!r}; expected one of: {allowed}")
        return normalized

    def _check_size(self, data: bytes) -> int:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError("data", "photo data must be bytes")
        size = len(data)
        if size == 0:
            raise ValidationError("data", "photo is empty")
        if size > self.max_bytes:
            raise ValidationError("data", f"photo is {size} bytes; the limit is {self.max_bytes}")
        return size

    def create(self, data: schemas.PhotoCreate | dict, content: bytes) -> schemas.Photo:
        """Store the bytes, then record the metadata row pointing at them."""
        payload = validate_input(schemas.PhotoCreate, data)
        mime_type = self._check_mime_type(payload.mime_type)
        size = self._check_size(content)
        filename = PurePath(payload.filename.replace("\\", "/")).name or "photo"

        with self._database.session() as db:
            get_miniature_row(db, payload.miniature_id)

        storage_key = self._storage.put(str(payload.miniature_id), bytes(content), mime_type)
        try:
            with self._database.session() as db:
                row = models.Photo(
                    miniature_id=payload.miniature_id,
                    filename=filename,
                    storage_key=storage_key,
                    file_size=size,
                    mime_type=mime_type,
                    created_at=models.now_utc(),
                )
                db.add(row)
                db.flush()
                photo = to_schema(schemas.Photo, row)
        except Exception:
            self._discard_blob(storage_key)
            raise
        logger.info("Stored photo %s for miniature %s (%d bytes)", photo.id, photo.miniature_id, size)
        return photo

    def _discard_blob(self, storage_key: str) -> None:
        try:
            self._storage.delete(storage_key)
            logger.info("Removed blob %s after failed metadata insert", storage_key)
        except StorageError as exc:
            logger.warning("Blob %s left behind after failed insert: %s", storage_key, exc)

    def get(self, photo_id: Any) -> schemas.Photo:
        pid = coerce_uuid(photo_id)
        with self._database.session() as db:
            return to_schema(schemas.Photo, get_photo_row(db, pid))

    def list(self, miniature_id: Any) -> List[schemas.Photo]:
        """Photos of one miniature, oldest first."""
        mid = coerce_uuid(miniature_id, "miniature_id")
        with self._database.session() as db:
            rows = (
                db.query(models.Photo)
                .filter(models.Photo.miniature_id == mid)
                .order_by(models.Photo.created_at.asc(), models.Photo.id.asc())
                .all()
            )
            return [to_schema(schemas.Photo, row) for row in rows]

    def get_data(self, photo_id: Any) -> bytes:
        return self._storage.get(self.get(photo_id).storage_key)

    def url_for(self, photo_id: Any) -> str:
        return self._storage.url_for(self.get(photo_id).storage_key)

    def total_size(self, miniature_id: Any = None) -> int:
        """Sum of stored photo sizes, overall or for one miniature."""
        with self._database.session() as db:
            q = db.query(func.coalesce(func.sum(models.Photo.file_size), 0))
            if miniature_id is not None:
                q = q.filter(models.Photo.miniature_id == coerce_uuid(miniature_id, "miniature_id"))
            return int(q.scalar())

    def delete(self, photo_id: Any) -> schemas.DeleteResult:
        """Remove metadata then blob; deleting an unknown id reports ``deleted=False``."""
        pid = coerce_uuid(photo_id)
        with self._database.session() as db:
            row = db.get(models.Photo, pid)
            if row is None:
                return schemas.DeleteResult(entity="photo", entity_id=pid, deleted=False)
            storage_key = row.storage_key
            db.delete(row)
        warnings = delete_blobs(self._storage, [storage_key])
        logger.info("Deleted photo %s", pid)
        return schemas.DeleteResult(
            entity="photo", entity_id=pid, deleted=True, photos_deleted=1, warnings=warnings
        )

    def reconcile(
        self,
        min_age: timedelta = DEFAULT_RECONCILE_MIN_AGE,
        dry_run: bool = False,
        now: Optional[datetime] = None,
    ) -> schemas.ReconcileReport:
        """Delete blobs no photo row references and report rows whose blob is gone.

        Blobs younger than ``min_age`` are left alone: they may belong to an
        upload whose metadata row has not been committed yet.
        """
        cutoff = (now or datetime.now(UTC)) - min_age
        with self._database.session() as db:
            referenced = {key: pid for pid, key in db.query(models.Photo.id, models.Photo.storage_key).all()}
        blobs = self._storage.list_blobs()
        stored_keys = {blob.key for blob in blobs}

        report = schemas.ReconcileReport(
            dry_run=dry_run,
            blobs_scanned=len(blobs),
            photos_scanned=len(referenced),
            dangling_photo_ids=sorted(
                (pid for key, pid in referenced.items() if key not in stored_keys), key=str
            ),
        )
        for blob in sorted(blobs, key=lambda b: b.key):
            if blob.key in referenced:
                continue
            if blob.modified_at > cutoff:
                report.skipped_recent.append(blob.key)
                continue
            report.orphaned_blobs.append(blob.key)

        if not dry_run:
            report.failures = delete_blobs(self._storage, report.orphaned_blobs)
            failed = {warning.storage_key for warning in report.failures}
            report.deleted_blobs = [key for key in report.orphaned_blobs if key not in failed]

        logger.info(
            "Photo reconciliation: %d orphaned blobs (%d deleted), %d dangling rows",
            len(report.orphaned_blobs),
            len(report.deleted_blobs),
            len(report.dangling_photo_ids),
        )
        return report
