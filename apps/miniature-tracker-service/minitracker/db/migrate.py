"""
Schema migration runner.

Wraps Alembic so the service can bring any database (including a brand new
empty file) to the latest schema at startup. Applied revisions are recorded
in ``alembic_version``; running the upgrade again is a no-op.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.exc import SQLAlchemyError

from minitracker.db.database import Database, translate_db_error
from minitracker.errors import RelationalError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def make_alembic_config(database_url: Optional[str] = None) -> Config:
    """Alembic config pointing at the packaged migration scripts."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    if database_url:
        # configparser interpolation treats '%' specially
        config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def head_version() -> str:
    return ScriptDirectory.from_config(make_alembic_config()).get_current_head()


def current_version(database: Database) -> Optional[str]:
    """Revision recorded in the database, or ``None`` for an unmigrated one."""
    try:
        with database.engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    except SQLAlchemyError as exc:
        raise translate_db_error(exc) from exc


def is_up_to_date(database: Database) -> bool:
    return current_version(database) == head_version()


def upgrade_to_head(database: Database) -> str:
    """Apply every pending revision in order and return the resulting version.

    All pending revisions run inside one transaction; a failure leaves the
    recorded version untouched.
    """
    before = current_version(database)
    config = make_alembic_config()
    try:
        with database.engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
    except SQLAlchemyError as exc:
        logger.error("Schema migration failed from version %s: %s", before, exc)
        raise RelationalError(f"Schema migration failed: {exc}") from exc

    after = current_version(database)
    if after != before:
        logger.info("Database schema migrated from %s to %s", before or "<empty>", after)
    else:
        logger.debug("Database schema already at %s", after)
    return after
