"""Photo blob storage backends."""
from __future__ import annotations

from minitracker.config import STORAGE_S3, Settings
from minitracker.storage.base import BlobInfo, StorageAdapter
from minitracker.storage.local import LocalStorage
from minitracker.storage.s3 import S3Storage


def build_storage(settings: Settings) -> StorageAdapter:
    """Instantiate the backend selected by ``STORAGE_TYPE``."""
    if settings.storage_type == STORAGE_S3:
        return S3Storage(
            bucket=settings.s3_bucket,
            region=settings.aws_region,
            prefix=settings.s3_prefix,
            public_base_url=settings.s3_public_base_url,
            timeout=settings.storage_timeout,
        )
    return LocalStorage(
        settings.local_storage_path,
        base_url=settings.local_storage_base_url,
        timeout=settings.storage_timeout,
    )


__all__ = ["BlobInfo", "StorageAdapter", "LocalStorage", "S3Storage", "build_storage"]
