"""
Filesystem blob store.

Blobs are flat files in one directory, named
``<UTC timestamp>_<random hex><ext>``. Writes go to a hidden temp file in
the same directory, are fsynced and then renamed into place, so a reader
never sees a partial blob.
"""
from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from datetime import datetime, UTC
from pathlib import Path
from typing import Iterable, Optional

from minitracker.errors import BlobNotFoundError, StorageError
from minitracker.storage.base import BlobInfo, StorageAdapter, unique_blob_name

log = logging.getLogger(__name__)

_TEMP_PREFIX = ".upload-"
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class LocalStorage(StorageAdapter):
    backend_name = "local"

    def __init__(self, base_path: str | os.PathLike, base_url: str = "", timeout: Optional[float] = None):
        super().__init__(timeout)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")
        log.info("Local photo storage at %s", self.base_path)

    def url_for(self, storage_key: str) -> str:
        path = self._path_for(storage_key)
        if not self.base_url:
            return path.as_uri()
        return f"{self.base_url}/{storage_key}"

    def _path_for(self, storage_key: str) -> Path:
        # Keys are bare file names; anything that could escape base_path is rejected
        if not storage_key or ".." in storage_key or not _KEY_PATTERN.match(storage_key):
            raise StorageError(f"Invalid storage key: {storage_key!r}")
        return self.base_path / storage_key

    def _new_key(self, key_hint: str, extension: str) -> str:
        name = unique_blob_name(extension)
        while (self.base_path / name).exists():
            name = unique_blob_name(extension)
        return name

    def _write(self, storage_key: str, data: bytes, mime_type: str) -> None:
        final_path = self._path_for(storage_key)
        tmp_path: Optional[Path] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, suffix=".tmp", dir=self.base_path)
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            # link() fails instead of replacing an existing target
            os.link(tmp_path, final_path)
        except FileExistsError:
            raise StorageError(f"Refusing to overwrite existing blob {storage_key}") from None
        except OSError as exc:
            raise StorageError(f"Failed to write blob {storage_key}: {exc}") from exc
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()

    def _read(self, storage_key: str) -> bytes:
        path = self._path_for(storage_key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise BlobNotFoundError(storage_key) from None
        except OSError as exc:
            raise StorageError(f"Failed to read blob {storage_key}: {exc}") from exc

    def _remove(self, storage_key: str) -> None:
        path = self._path_for(storage_key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete blob {storage_key}: {exc}") from exc

    def _contains(self, storage_key: str) -> bool:
        return self._path_for(storage_key).is_file()

    def _iter_blobs(self) -> Iterable[BlobInfo]:
        try:
            entries = list(os.scandir(self.base_path))
        except OSError as exc:
            raise StorageError(f"Failed to list blobs in {self.base_path}: {exc}") from exc
        for entry in entries:
            if entry.name.startswith(".") or not entry.is_file():
                continue
            stat = entry.stat()
            yield BlobInfo(
                key=entry.name,
                size=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, UTC),
            )
