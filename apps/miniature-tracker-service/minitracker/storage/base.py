"""
Blob storage contract shared by the local and S3 backends.

Public methods handle deadlines and error translation; backends implement
the underscore hooks and raise ``StorageError`` (or ``BlobNotFoundError``)
for anything that goes wrong. ``put`` is all-or-nothing: on failure no
blob is readable under the generated key.
"""
from __future__ import annotations

import logging
import re
import secrets
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Iterable, List, Optional

from minitracker.errors import StorageError, TrackerError
from minitracker.storage.timeouts import DeadlineRunner, wait_for
from minitracker.utils.media import extension_for

logger = logging.getLogger(__name__)

_HINT_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass(frozen=True)
class BlobInfo:
    key: str
    size: int
    modified_at: datetime


def unique_blob_name(extension: str) -> str:
    """``<UTC timestamp>_<random hex><extension>``, unique per call."""
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{stamp}_{secrets.token_hex(8)}{extension}"


def sanitize_key_hint(key_hint: Optional[str]) -> str:
    cleaned = _HINT_UNSAFE.sub("-", str(key_hint or "")).strip("-")
    return cleaned[:64] or "unassigned"


class StorageAdapter(ABC):
    """Opaque-key blob store."""

    backend_name = "abstract"

    def __init__(self, timeout: Optional[float] = None):
        self._runner = DeadlineRunner(timeout)

    @property
    def timeout(self) -> Optional[float]:
        return self._runner.seconds

    # -- public API -----------------------------------------------------

    def put(self, key_hint: str, data: bytes, mime_type: str, timeout: Optional[float] = None) -> str:
        """Store ``data`` under a freshly generated key and return the key.

        Every public call accepts ``timeout`` to override the adapter-wide
        deadline for that call only.
        """
        if not data:
            raise StorageError("Refusing to store an empty blob")
        try:
            extension = extension_for(mime_type)
        except ValueError as exc:
            raise StorageError(str(exc)) from exc
        storage_key = self._new_key(key_hint, extension)

        limit = self._runner.resolve(timeout)
        if limit is None:
            self._call("put", self._write, storage_key, data, mime_type)
        else:
            future = self._runner.submit(self._write, storage_key, data, mime_type)
            try:
                self._await("put", future, limit)
            except StorageError:
                # A write that lands after its deadline must not leave a blob behind
                future.add_done_callback(lambda done: self._discard_late_write(storage_key, done))
                raise
        logger.debug("Stored %d bytes under %s", len(data), storage_key)
        return storage_key

    def get(self, storage_key: str, timeout: Optional[float] = None) -> bytes:
        return self._call("get", self._read, storage_key, timeout=timeout)

    def delete(self, storage_key: str, timeout: Optional[float] = None) -> None:
        """Remove the blob; deleting a missing key succeeds."""
        self._call("delete", self._remove, storage_key, timeout=timeout)

    def exists(self, storage_key: str, timeout: Optional[float] = None) -> bool:
        return self._call("exists", self._contains, storage_key, timeout=timeout)

    def list_blobs(self, timeout: Optional[float] = None) -> List[BlobInfo]:
        """Every blob held by this store (used by orphan reconciliation)."""
        return self._call("list", lambda: list(self._iter_blobs()), timeout=timeout)

    @abstractmethod
    def url_for(self, storage_key: str) -> str:
        """Retrievable URL for ``storage_key``."""

    def close(self) -> None:
        self._runner.shutdown()

    # -- backend hooks --------------------------------------------------

    @abstractmethod
    def _new_key(self, key_hint: str, extension: str) -> str: ...

    @abstractmethod
    def _write(self, storage_key: str, data: bytes, mime_type: str) -> None: ...

    @abstractmethod
    def _read(self, storage_key: str) -> bytes: ...

    @abstractmethod
    def _remove(self, storage_key: str) -> None: ...

    @abstractmethod
    def _contains(self, storage_key: str) -> bool: ...

    @abstractmethod
    def _iter_blobs(self) -> Iterable[BlobInfo]: ...

    # -- helpers --------------------------------------------------------

    def _call(self, operation: str, fn, *args, timeout: Optional[float] = None):
        try:
            return self._runner.run(operation, fn, *args, seconds=timeout)
        except TrackerError:
            raise
        except Exception as exc:
            logger.error("Storage %s failed on %s backend: %s", operation, self.backend_name, exc)
            raise StorageError(f"Storage {operation} failed: {exc}") from exc

    def _await(self, operation: str, future: Future, seconds: Optional[float]):
        try:
            return wait_for(future, seconds, operation)
        except TrackerError:
            raise
        except Exception as exc:
            raise StorageError(f"Storage {operation} failed: {exc}") from exc

    def _discard_late_write(self, storage_key: str, future: Future) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        try:
            self._remove(storage_key)
            logger.info("Removed late-arriving blob %s after upload deadline", storage_key)
        except Exception as exc:
            logger.warning("Could not remove late-arriving blob %s: %s", storage_key, exc)
