"""
Painting recipe repository.

Recipes are independent of projects. Deleting a recipe removes its links
to miniatures but never the miniatures themselves.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from minitracker.db import models, schemas
from minitracker.db.database import Database
from minitracker.db.repo_utils import (
    check_expected_version,
    coerce_uuid,
    guarded_update,
    to_schema,
    update_values,
    validate_input,
)
from minitracker.errors import NotFoundError
from minitracker.utils.enums import MiniatureType, parse_enum

logger = logging.getLogger(__name__)


def get_recipe_row(db: Session, recipe_id: uuid.UUID) -> models.PaintingRecipe:
    row = db.get(models.PaintingRecipe, recipe_id)
    if row is None:
        raise NotFoundError("Recipe", recipe_id)
    return row


class RecipeRepository:
    def __init__(self, database: Database):
        self._database = database

    def create(self, data: schemas.RecipeCreate | dict) -> schemas.Recipe:
        payload = validate_input(schemas.RecipeCreate, data)
        stamp = models.now_utc()
        with self._database.session() as db:
            row = models.PaintingRecipe(
                name=payload.name,
                miniature_type=payload.miniature_type.value,
                steps=list(payload.steps),
                paints_used=list(payload.paints_used),
                techniques=list(payload.techniques),
                notes=payload.notes,
                created_at=stamp,
                updated_at=stamp,
            )
            db.add(row)
            db.flush()
            recipe = to_schema(schemas.Recipe, row)
        logger.info("Created recipe %s (%d steps)", recipe.id, len(recipe.steps))
        return recipe

    def get(self, recipe_id: Any) -> schemas.Recipe:
        rid = coerce_uuid(recipe_id)
        with self._database.session() as db:
            return to_schema(schemas.Recipe, get_recipe_row(db, rid))

    def list(self, miniature_type: MiniatureType | str | None = None) -> List[schemas.Recipe]:
        """Recipes by name; ``miniature_type`` is an exact match."""
        kind = parse_enum(MiniatureType, miniature_type, "miniature_type")
        with self._database.session() as db:
            q = db.query(models.PaintingRecipe)
            if kind is not None:
                q = q.filter(models.PaintingRecipe.miniature_type == kind.value)
            rows = q.order_by(
                models.PaintingRecipe.name.asc(),
                models.PaintingRecipe.created_at.asc(),
                models.PaintingRecipe.id.asc(),
            ).all()
            return [to_schema(schemas.Recipe, row) for row in rows]

    def update(
        self,
        recipe_id: Any,
        changes: schemas.RecipeUpdate | dict,
        expected_updated_at: Optional[datetime] = None,
    ) -> schemas.Recipe:
        rid = coerce_uuid(recipe_id)
        payload = validate_input(schemas.RecipeUpdate, changes)
        values = update_values(payload)
        with self._database.session() as db:
            row = get_recipe_row(db, rid)
            check_expected_version("Recipe", rid, row.updated_at, expected_updated_at)
            values["updated_at"] = models.now_utc()
            guarded_update(db, models.PaintingRecipe, row, values, "Recipe")
            return to_schema(schemas.Recipe, row)

    def delete(self, recipe_id: Any) -> schemas.DeleteResult:
        rid = coerce_uuid(recipe_id)
        with self._database.session() as db:
            row = get_recipe_row(db, rid)
            links = (
                db.query(models.MiniatureRecipe)
                .filter(models.MiniatureRecipe.recipe_id == rid)
                .delete(synchronize_session=False)
            )
            db.delete(row)
        logger.info("Deleted recipe %s and %d miniature links", rid, links)
        return schemas.DeleteResult(entity="recipe", entity_id=rid, deleted=True, links_deleted=links)
