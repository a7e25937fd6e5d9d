"""
Links between miniatures and the recipes used to paint them.

Linking only checks that both sides exist; it never reads or changes any
other field of either entity.
"""
from __future__ import annotations

import logging
from typing import Any, List

from sqlalchemy import func

from minitracker.db import models, schemas
from minitracker.db.database import Database
from minitracker.db.repo_utils import coerce_uuid, to_schema
from minitracker.db.repositories.miniatures import get_miniature_row
from minitracker.db.repositories.recipes import get_recipe_row
from minitracker.errors import NotFoundError

logger = logging.getLogger(__name__)


class RecipeLinkRepository:
    def __init__(self, database: Database):
        self._database = database

    def link(self, miniature_id: Any, recipe_id: Any) -> schemas.RecipeLink:
        """Associate a recipe with a miniature; linking an existing pair is a no-op."""
        mid = coerce_uuid(miniature_id, "miniature_id")
        rid = coerce_uuid(recipe_id, "recipe_id")
        with self._database.session() as db:
            get_miniature_row(db, mid)
            get_recipe_row(db, rid)
            row = db.get(models.MiniatureRecipe, (mid, rid))
            if row is None:
                row = models.MiniatureRecipe(miniature_id=mid, recipe_id=rid, created_at=models.now_utc())
                db.add(row)
                db.flush()
                logger.info("Linked recipe %s to miniature %s", rid, mid)
            return to_schema(schemas.RecipeLink, row)

    def unlink(self, miniature_id: Any, recipe_id: Any) -> None:
        mid = coerce_uuid(miniature_id, "miniature_id")
        rid = coerce_uuid(recipe_id, "recipe_id")
        with self._database.session() as db:
            removed = (
                db.query(models.MiniatureRecipe)
                .filter(models.MiniatureRecipe.miniature_id == mid, models.MiniatureRecipe.recipe_id == rid)
                .delete(synchronize_session=False)
            )
            if removed == 0:
                raise NotFoundError("RecipeLink", f"{mid}/{rid}")
        logger.info("Unlinked recipe %s from miniature %s", rid, mid)

    def recipes_for_miniature(self, miniature_id: Any) -> List[schemas.Recipe]:
        mid = coerce_uuid(miniature_id, "miniature_id")
        with self._database.session() as db:
            get_miniature_row(db, mid)
            rows = (
                db.query(models.PaintingRecipe)
                .join(models.MiniatureRecipe, models.MiniatureRecipe.recipe_id == models.PaintingRecipe.id)
                .filter(models.MiniatureRecipe.miniature_id == mid)
                .order_by(models.MiniatureRecipe.created_at.asc(), models.PaintingRecipe.id.asc())
                .all()
            )
            return [to_schema(schemas.Recipe, row) for row in rows]

    def miniatures_for_recipe(self, recipe_id: Any) -> List[schemas.Miniature]:
        rid = coerce_uuid(recipe_id, "recipe_id")
        with self._database.session() as db:
            get_recipe_row(db, rid)
            rows = (
                db.query(models.Miniature)
                .join(models.MiniatureRecipe, models.MiniatureRecipe.miniature_id == models.Miniature.id)
                .filter(models.MiniatureRecipe.recipe_id == rid)
                .order_by(models.MiniatureRecipe.created_at.asc(), models.Miniature.id.asc())
                .all()
            )
            return [to_schema(schemas.Miniature, row) for row in rows]

    def usage_count(self, recipe_id: Any) -> int:
        """Number of miniatures currently linked to the recipe."""
        rid = coerce_uuid(recipe_id, "recipe_id")
        with self._database.session() as db:
            get_recipe_row(db, rid)
            return (
                db.query(func.count(models.MiniatureRecipe.miniature_id))
                .filter(models.MiniatureRecipe.recipe_id == rid)
                .scalar()
            )
