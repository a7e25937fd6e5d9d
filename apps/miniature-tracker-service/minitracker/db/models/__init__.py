"""
Domain-split SQLAlchemy models.

Exposes ``Base``, ``now_utc`` and every ORM class so callers can write
``models.Project`` without knowing the module layout.
"""

from .base import Base, now_utc  # re-export

from .projects import Project
from .miniatures import Miniature
from .recipes import PaintingRecipe, MiniatureRecipe
from .photos import Photo

__all__ = [
    "Base",
    "now_utc",
    "Project",
    "Miniature",
    "PaintingRecipe",
    "MiniatureRecipe",
    "Photo",
]
