"""
Amazon S3 blob store.

Keys look like ``<prefix>miniatures/<miniature id>/<timestamp>_<hex><ext>``.
S3 writes are atomic per object, and ``ContentMD5`` makes the service
reject a corrupted upload instead of storing it.
"""
from __future__ import annotations

import base64
import hashlib
import logging
from typing import Any, Iterable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from minitracker.errors import BlobNotFoundError, StorageError
from minitracker.storage.base import BlobInfo, StorageAdapter, sanitize_key_hint, unique_blob_name

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}
KEY_ROOT = "miniatures/"
PRESIGNED_URL_TTL_SECONDS = 3600


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3Storage(StorageAdapter):
    backend_name = "s3"

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        prefix: str = "",
        public_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        super().__init__(timeout)
        if not bucket:
            raise ValueError("S3 bucket name is required")
        self.bucket = bucket
        self.region = region
        prefix = prefix.strip("/")
        self.prefix = f"{prefix}/" if prefix else ""
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.client = client if client is not None else self._build_client()
        logger.info("S3 photo storage at s3://%s/%s", self.bucket, self.prefix)

    def _build_client(self):
        options: dict = {"retries": {"max_attempts": 3, "mode": "standard"}}
        if self.timeout is not None:
            options["connect_timeout"] = self.timeout
            options["read_timeout"] = self.timeout
        # Sessions are not thread-safe; clients created from one are
        session = boto3.session.Session()
        return session.client("s3", region_name=self.region, config=Config(**options))

    def url_for(self, storage_key: str) -> str:
        self._check_key(storage_key)
        if self.public_base_url:
            return f"{self.public_base_url}/{storage_key}"
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": storage_key},
                ExpiresIn=PRESIGNED_URL_TTL_SECONDS,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to sign URL for {storage_key}: {exc}") from exc

    def _check_key(self, storage_key: str) -> None:
        if not storage_key or storage_key.startswith("/") or ".." in storage_key.split("/"):
            raise StorageError(f"Invalid storage key: {storage_key!r}")

    def _new_key(self, key_hint: str, extension: str) -> str:
        return f"{self.prefix}{KEY_ROOT}{sanitize_key_hint(key_hint)}/{unique_blob_name(extension)}"

    def _write(self, storage_key: str, data: bytes, mime_type: str) -> None:
        self._check_key(storage_key)
        digest = base64.b64encode(hashlib.md5(data).digest()).decode("ascii")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=storage_key,
                Body=data,
                ContentType=mime_type,
                ContentMD5=digest,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to upload {storage_key}: {exc}") from exc

    def _read(self, storage_key: str) -> bytes:
        self._check_key(storage_key)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=storage_key)
            return response["Body"].read()
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                raise BlobNotFoundError(storage_key) from None
            raise StorageError(f"Failed to download {storage_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to download {storage_key}: {exc}") from exc

    def _remove(self, storage_key: str) -> None:
        self._check_key(storage_key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=storage_key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return
            raise StorageError(f"Failed to delete {storage_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to delete {storage_key}: {exc}") from exc

    def _contains(self, storage_key: str) -> bool:
        self._check_key(storage_key)
        try:
            self.client.head_object(Bucket=self.bucket, Key=storage_key)
            return True
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to check {storage_key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to check {storage_key}: {exc}") from exc

    def _iter_blobs(self) -> Iterable[BlobInfo]:
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=f"{self.prefix}{KEY_ROOT}"):
                for item in page.get("Contents", []):
                    yield BlobInfo(key=item["Key"], size=item["Size"], modified_at=item["LastModified"])
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to list s3://{self.bucket}/{self.prefix}: {exc}") from exc
