"""
Domain-split Pydantic schemas.

Input schemas (``*Create`` / ``*Update``) enforce the domain rules; read
schemas are what repositories return.
"""

from .projects import ProjectBase, ProjectCreate, ProjectUpdate, Project, ProjectProgress
from .miniatures import MiniatureBase, MiniatureCreate, MiniatureUpdate, Miniature
from .recipes import RecipeBase, RecipeCreate, RecipeUpdate, Recipe, RecipeLink
from .photos import PhotoCreate, Photo
from .results import BlobWarning, DeleteResult, ReconcileReport

__all__ = [
    "ProjectBase",
    "ProjectCreate",
    "ProjectUpdate",
    "Project",
    "ProjectProgress",
    "MiniatureBase",
    "MiniatureCreate",
    "MiniatureUpdate",
    "Miniature",
    "RecipeBase",
    "RecipeCreate",
    "RecipeUpdate",
    "Recipe",
    "RecipeLink",
    "PhotoCreate",
    "Photo",
    "BlobWarning",
    "DeleteResult",
    "ReconcileReport",
]
