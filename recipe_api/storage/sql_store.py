"""Relational recipe storage (SQLAlchemy).

Consistency is delegated to the database: each call runs in its own
session and transaction, and concurrent updates to one id are
last-writer-wins.
"""
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

from sqlalchemy import or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recipe_api.exceptions import RecipeNotFoundError, StorageUnavailableError
from recipe_api.models.recipe import RecipeRow
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import Recipe, RecipeInput
from recipe_api.storage.base import check_recipe, matches_search, next_updated_at, require_id_for_update
from recipe_api.utils.auth import utcnow
from recipe_api.utils.logger import logger


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _to_recipe(row: RecipeRow) -> Recipe:
    recipe = Recipe.model_validate(row)
    return recipe.model_copy(update={
        "ingredients": list(row.ingredients),
        "created_at": _aware(row.created_at),
        "updated_at": _aware(row.updated_at),
    })


class SQLRecipeStore:
    """Recipe store backed by the ``recipes`` table"""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock
        logger.info("Using database recipe storage", extra={"backend": "database"})

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageUnavailableError(f"Database error: {exc}", backend="database") from exc
        finally:
            db.close()

    def _newest_first(self):
        return select(RecipeRow).order_by(RecipeRow.created_at.desc())

    # ----- reads -----

    def list_recipes(self) -> List[Recipe]:
        with self._session() as db:
            rows = db.scalars(self._newest_first()).all()
            return [_to_recipe(row) for row in rows]

    def get_recipe(self, recipe_id: str) -> Recipe:
        with self._session() as db:
            row = db.get(RecipeRow, recipe_id)
            if row is None:
                raise RecipeNotFoundError(recipe_id)
            return _to_recipe(row)

    def list_by_category(self, category: str) -> List[Recipe]:
        with self._session() as db:
            rows = db.scalars(self._newest_first().where(RecipeRow.category == category)).all()
            return [_to_recipe(row) for row in rows]

    def search(self, term: str) -> List[Recipe]:
        name_match = RecipeRow.name.ilike(f"%{_escape_like(term)}%", escape="\\")

        with self._session() as db:
            if db.get_bind().dialect.name == "postgresql":
                query = self._newest_first().where(or_(name_match, RecipeRow.ingredients.any(term)))
                return [_to_recipe(row) for row in db.scalars(query).all()]

            # No array operators on SQLite: evaluate the same predicate in Python
            recipes = [_to_recipe(row) for row in db.scalars(self._newest_first()).all()]
            return [r for r in recipes if matches_search(r, term)]

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    # ----- writes -----

    def save_recipe(
        self, recipe: RecipeInput, identity: Optional[Identity] = None, must_exist: bool = False
    ) -> Recipe:
        data = check_recipe(recipe)
        require_id_for_update(data, must_exist)
        user_id = identity.user_id if identity else None
        fields = data.model_dump(exclude={"id"})

        with self._session() as db:
            now = self._clock()
            row = db.get(RecipeRow, data.id, with_for_update=must_exist) if data.id is not None else None
            if row is None and must_exist:
                raise RecipeNotFoundError(data.id)

            if row is not None:
                for key, value in fields.items():
                    setattr(row, key, value)
                row.updated_at = next_updated_at(now, _aware(row.updated_at))
                row.updated_by = user_id
                action = "update_recipe"
            else:
                row = RecipeRow(
                    id=data.id or str(uuid.uuid4()),
                    created_at=now,
                    updated_at=now,
                    created_by=user_id,
                    updated_by=user_id,
                    **fields,
                )
                db.add(row)
                action = "create_recipe"

            db.commit()
            saved = _to_recipe(row)

        logger.info(
            f"Saved recipe {saved.id}",
            extra={
                "recipe_id": saved.id,
                "username": identity.username if identity else None,
                "action": action,
            },
        )
        return saved

    def delete_recipe(self, recipe_id: str) -> None:
        with self._session() as db:
            row = db.get(RecipeRow, recipe_id)
            if row is None:
                raise RecipeNotFoundError(recipe_id)
            db.delete(row)
            db.commit()

        logger.info(f"Deleted recipe {recipe_id}", extra={"recipe_id": recipe_id, "action": "delete_recipe"})
