"""
Runtime configuration sourced from the environment.

``get_settings()`` reads the environment once (after loading a ``.env`` file
when present) and caches a frozen ``Settings``; call
``refresh_settings_cache()`` after changing the environment in tests.
Misconfiguration raises ``ValueError`` at load time rather than at first use.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from minitracker.utils.media import DEFAULT_MAX_PHOTO_BYTES

STORAGE_LOCAL = "local"
STORAGE_S3 = "s3"
ALL_STORAGE_TYPES = frozenset({STORAGE_LOCAL, STORAGE_S3})

DEFAULT_DATABASE_URL = "sqlite:///./miniature_tracker.db"

_POSTGRES_VARS = ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB")


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _get_database_url() -> str:
    # An explicit DATABASE_URL wins
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    parts = {name: os.getenv(name) for name in _POSTGRES_VARS}
    if not any(parts.values()):
        return DEFAULT_DATABASE_URL

    # Partial PostgreSQL configuration is an error, not a silent SQLite fallback
    missing = [name for name, value in parts.items() if not value]
    if missing:
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return (
        f"postgresql://{parts['POSTGRES_USER']}:{parts['POSTGRES_PASSWORD']}"
        f"@{parts['POSTGRES_HOST']}:{parts['POSTGRES_PORT']}/{parts['POSTGRES_DB']}"
    )


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_acquire_timeout: float = 3.0
    db_pool_recycle: int = 1800
    db_echo: bool = False

    storage_type: str = STORAGE_LOCAL
    local_storage_path: str = "./uploads"
    local_storage_base_url: str = "http://localhost:3000/uploads"
    s3_bucket: Optional[str] = None
    aws_region: Optional[str] = None
    s3_prefix: str = ""
    s3_public_base_url: Optional[str] = None
    storage_timeout: Optional[float] = 30.0

    photo_max_bytes: int = DEFAULT_MAX_PHOTO_BYTES
    photo_allow_heic: bool = False

    auto_migrate: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url must not be empty")
        if self.storage_type not in ALL_STORAGE_TYPES:
            allowed = ", ".join(sorted(ALL_STORAGE_TYPES))
            raise ValueError(f"STORAGE_TYPE must be one of: {allowed}; got {self.storage_type!r}")
        if self.storage_type == STORAGE_S3 and not self.s3_bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_TYPE=s3")
        if self.storage_type == STORAGE_LOCAL and not self.local_storage_path:
            raise ValueError("LOCAL_STORAGE_PATH is required when STORAGE_TYPE=local")
        if self.db_pool_size < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        if self.db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must not be negative")
        if self.db_acquire_timeout <= 0:
            raise ValueError("DB_ACQUIRE_TIMEOUT_SECONDS must be positive")
        if self.photo_max_bytes < 1:
            raise ValueError("PHOTO_MAX_BYTES must be positive")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def load_settings() -> Settings:
    """Build ``Settings`` from the current process environment (uncached)."""
    storage_timeout: Optional[float] = _float_env("STORAGE_TIMEOUT_SECONDS", 30.0)
    if storage_timeout <= 0:
        storage_timeout = None
    return Settings(
        database_url=_get_database_url(),
        db_pool_size=_int_env("DB_POOL_SIZE", 10),
        db_max_overflow=_int_env("DB_MAX_OVERFLOW", 20),
        db_acquire_timeout=_float_env("DB_ACQUIRE_TIMEOUT_SECONDS", 3.0),
        db_pool_recycle=_int_env("DB_POOL_RECYCLE_SECONDS", 1800),
        db_echo=_normalize_bool(os.getenv("DB_ECHO"), default=False),
        storage_type=(os.getenv("STORAGE_TYPE") or STORAGE_LOCAL).strip().lower(),
        local_storage_path=os.getenv("LOCAL_STORAGE_PATH") or "./uploads",
        local_storage_base_url=os.getenv("LOCAL_STORAGE_BASE_URL") or "http://localhost:3000/uploads",
        s3_bucket=_optional_env("S3_BUCKET"),
        aws_region=_optional_env("AWS_REGION"),
        s3_prefix=(os.getenv("S3_PREFIX") or "").strip(),
        s3_public_base_url=_optional_env("S3_PUBLIC_BASE_URL"),
        storage_timeout=storage_timeout,
        photo_max_bytes=_int_env("PHOTO_MAX_BYTES", DEFAULT_MAX_PHOTO_BYTES),
        photo_allow_heic=_normalize_bool(os.getenv("PHOTO_ALLOW_HEIC"), default=False),
        auto_migrate=_normalize_bool(os.getenv("AUTO_MIGRATE"), default=True),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the cached settings sourced from the environment."""
    load_dotenv(override=False)
    return load_settings()


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()
