"""
Typed errors raised by the persistence core.

Every failure that leaves a repository or storage adapter is one of the
classes below. Callers branch on the class or on ``retryable``: relational
and storage failures may succeed on a later attempt, the others will not.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class TrackerError(Exception):
    """Base class for all errors raised by the tracker core."""

    error_type = "internal_error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "retryable": self.retryable,
        }


class ValidationError(TrackerError):
    """Input (or stored data) violates a domain constraint."""

    error_type = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.detail = message

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload

    @classmethod
    def from_pydantic(cls, exc, prefix: Optional[str] = None) -> "ValidationError":
        """Collapse a pydantic ``ValidationError`` into the first failing field."""
        errors = exc.errors()
        if not errors:
            return cls(prefix or "input", str(exc))
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part != "__root__"]
        field = ".".join(loc) or (prefix or "input")
        if prefix and loc:
            field = f"{prefix}.{field}"
        return cls(field, first.get("msg", "invalid value"))


class NotFoundError(TrackerError):
    """A referenced entity does not exist."""

    error_type = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} with id {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(TrackerError):
    """Uniqueness, referential or optimistic-concurrency conflict."""

    error_type = "conflict"


class StorageError(TrackerError):
    """Blob store unreachable, failed or timed out."""

    error_type = "storage_error"
    retryable = True


class BlobNotFoundError(StorageError):
    """The requested storage key holds no blob."""

    error_type = "blob_not_found"
    retryable = False

    def __init__(self, storage_key: str):
        super().__init__(f"No blob stored under key {storage_key}")
        self.storage_key = storage_key


class RelationalError(TrackerError):
    """Relational store unreachable, failed or timed out."""

    error_type = "database_error"
    retryable = True
