"""
Service assembly.

``bootstrap()`` turns ``Settings`` into a ready-to-use set of repositories:
it opens the database, brings the schema to the latest version (unless
``AUTO_MIGRATE`` is off), builds the configured blob store and wires the
repositories on top. ``TrackerServices.close()`` releases all of it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from minitracker.config import Settings, get_settings
from minitracker.db.database import Database
from minitracker.db.migrate import upgrade_to_head
from minitracker.db.repositories import Repositories, build_repositories
from minitracker.storage import StorageAdapter, build_storage

logger = logging.getLogger(__name__)


@dataclass
class TrackerServices:
    settings: Settings
    database: Database
    storage: StorageAdapter
    repositories: Repositories

    def close(self) -> None:
        self.storage.close()
        self.database.dispose()


def bootstrap(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[StorageAdapter] = None,
    migrate: Optional[bool] = None,
) -> TrackerServices:
    settings = settings or get_settings()
    database = Database.from_settings(settings)
    try:
        database.health_check()
        if settings.auto_migrate if migrate is None else migrate:
            upgrade_to_head(database)
        storage = storage or build_storage(settings)
    except Exception:
        database.dispose()
        raise

    repositories = build_repositories(database, storage, settings)
    logger.info(
        "Tracker services ready (database=%s, storage=%s)",
        database.dialect_name,
        storage.backend_name,
    )
    return TrackerServices(settings=settings, database=database, storage=storage, repositories=repositories)
