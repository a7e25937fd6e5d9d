"""Photo media types accepted by the tracker."""
from __future__ import annotations

from typing import FrozenSet

MIME_JPEG = "image/jpeg"
MIME_PNG = "image/png"
MIME_WEBP = "image/webp"
MIME_HEIC = "image/heic"

MIME_EXTENSIONS = {
    MIME_JPEG: ".jpg",
    MIME_PNG: ".png",
    MIME_WEBP: ".webp",
    MIME_HEIC: ".heic",
}

BASE_PHOTO_MIME_TYPES: FrozenSet[str] = frozenset({MIME_JPEG, MIME_PNG, MIME_WEBP})
ALL_PHOTO_MIME_TYPES: FrozenSet[str] = frozenset(MIME_EXTENSIONS)

DEFAULT_MAX_PHOTO_BYTES = 10 * 1024 * 1024


def normalize_mime_type(mime_type: str) -> str:
    return (mime_type or "").split(";", 1)[0].strip().lower()


def allowed_mime_types(allow_heic: bool = False) -> FrozenSet[str]:
    return ALL_PHOTO_MIME_TYPES if allow_heic else BASE_PHOTO_MIME_TYPES


def extension_for(mime_type: str) -> str:
    """File extension (with leading dot) for a supported mime type."""
    try:
        return MIME_EXTENSIONS[normalize_mime_type(mime_type)]
    except KeyError:
        raise ValueError(f"Unsupported photo mime type: {mime_type!r}") from None
