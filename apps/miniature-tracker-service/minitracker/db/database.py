"""
Database engine and session management.

Builds the SQLAlchemy engine from ``Settings``: SQLite for the embedded
deployment (foreign keys switched on for every connection) and PostgreSQL
for the client/server one (bounded pool with acquire timeout and
recycling). Repositories borrow one session per operation through
``Database.session()``.
"""
from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from minitracker.config import Settings
from minitracker.errors import ConflictError, RelationalError, TrackerError

logger = logging.getLogger(__name__)


def is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def mask_url(url: str) -> str:
    """Render ``url`` with the password hidden, for logs."""
    return make_url(url).render_as_string(hide_password=True)


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for ``create_engine`` matching the configured backend."""
    url = make_url(settings.database_url)
    options: Dict[str, Any] = {"echo": settings.db_echo}

    if url.get_backend_name() == "sqlite":
        # One connection is shared across threads for in-memory databases
        connect_args = {"check_same_thread": False, "timeout": settings.db_acquire_timeout}
        options["connect_args"] = connect_args
        if is_memory_sqlite(settings.database_url):
            options["poolclass"] = StaticPool
            return options
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_acquire_timeout,
        )
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_acquire_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
        connect_args={"connect_timeout": max(1, math.ceil(settings.db_acquire_timeout))},
    )
    return options


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def create_engine_from_settings(settings: Settings) -> Engine:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite" and not is_memory_sqlite(settings.database_url):
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(settings.database_url, **engine_options(settings))
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def translate_db_error(exc: SQLAlchemyError) -> TrackerError:
    """Map a SQLAlchemy exception onto the tracker error taxonomy."""
    if isinstance(exc, PoolTimeoutError):
        return RelationalError(f"Timed out acquiring a database connection: {exc}")
    if isinstance(exc, IntegrityError):
        return ConflictError(f"Constraint violated: {exc.orig}")
    return RelationalError(f"Database operation failed: {exc}")


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        logger.info("Connecting to database %s", mask_url(settings.database_url))
        return cls(create_engine_from_settings(settings))

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on any error.

        Driver and pool failures leave as ``RelationalError`` or
        ``ConflictError``; tracker errors raised inside the block pass through
        unchanged after the rollback.
        """
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except TrackerError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            error = translate_db_error(exc)
            logger.warning("Transaction rolled back (%s): %s", error.error_type, exc)
            raise error from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Round-trip ``SELECT 1``; raises ``RelationalError`` when unreachable."""
        try:
            with self.engine.connect() as connection:
                return connection.execute(text("SELECT 1")).scalar() == 1
        except SQLAlchemyError as exc:
            raise translate_db_error(exc) from exc

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")
