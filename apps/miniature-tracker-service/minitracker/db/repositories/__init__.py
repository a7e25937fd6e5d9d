"""
Repositories for the tracker's entities.

Each repository owns its transactions: every public method opens one
session on the shared ``Database`` and commits or rolls back before
returning. ``build_repositories`` wires the full set for one deployment.
"""
from __future__ import annotations

from dataclasses import dataclass

from minitracker.config import Settings
from minitracker.db.database import Database
from minitracker.storage.base import StorageAdapter

from .projects import ProjectRepository
from .miniatures import MiniatureRepository
from .recipes import RecipeRepository
from .recipe_links import RecipeLinkRepository
from .photos import PhotoRepository


@dataclass(frozen=True)
class Repositories:
    projects: ProjectRepository
    miniatures: MiniatureRepository
    recipes: RecipeRepository
    recipe_links: RecipeLinkRepository
    photos: PhotoRepository


def build_repositories(database: Database, storage: StorageAdapter, settings: Settings) -> Repositories:
    return Repositories(
        projects=ProjectRepository(database, storage),
        miniatures=MiniatureRepository(database, storage),
        recipes=RecipeRepository(database),
        recipe_links=RecipeLinkRepository(database),
        photos=PhotoRepository(
            database,
            storage,
            max_bytes=settings.photo_max_bytes,
            allow_heic=settings.photo_allow_heic,
        ),
    )


__all__ = [
    "ProjectRepository",
    "MiniatureRepository",
    "RecipeRepository",
    "RecipeLinkRepository",
    "PhotoRepository",
    "Repositories",
    "build_repositories",
]
