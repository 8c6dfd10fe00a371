"""JSON file recipe storage.

The whole collection lives in one pretty-printed JSON array. Every read
parses the file and every mutation rewrites it completely, so reads and
writes are serialized through one readers-writer lock.
"""
import json
import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from recipe_api.exceptions import RecipeNotFoundError, StorageUnavailableError
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import Recipe, RecipeInput
from recipe_api.storage.base import (
    check_recipe,
    matches_search,
    newest_first,
    next_updated_at,
    require_id_for_update,
)
from recipe_api.utils.auth import utcnow
from recipe_api.utils.logger import logger
from recipe_api.utils.rwlock import ReadWriteLock

_recipe_list = TypeAdapter(List[Recipe])

# Creator/modifier references only exist in the relational schema
_FILE_EXCLUDE = {"created_by", "updated_by"}


class JSONRecipeStore:
    """Recipe store backed by a single JSON file"""

    def __init__(self, path: Union[str, Path], clock: Callable[[], datetime] = utcnow):
        self.path = Path(path)
        self._clock = clock
        self._lock = ReadWriteLock()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self._write([])
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot initialise recipe file {self.path}: {exc}", backend="json"
            ) from exc

        logger.info(f"Using JSON recipe storage at {self.path}", extra={"backend": "json"})

    # ----- reads -----

    def list_recipes(self) -> List[Recipe]:
        with self._lock.read_locked():
            recipes = self._read()
        return newest_first(recipes)

    def get_recipe(self, recipe_id: str) -> Recipe:
        with self._lock.read_locked():
            recipes = self._read()
        for recipe in recipes:
            if recipe.id == recipe_id:
                return recipe
        raise RecipeNotFoundError(recipe_id)

    def list_by_category(self, category: str) -> List[Recipe]:
        return [r for r in self.list_recipes() if r.category == category]

    def search(self, term: str) -> List[Recipe]:
        return [r for r in self.list_recipes() if matches_search(r, term)]

    def ping(self) -> None:
        with self._lock.read_locked():
            self._read()

    # ----- writes -----

    def save_recipe(
        self, recipe: RecipeInput, identity: Optional[Identity] = None, must_exist: bool = False
    ) -> Recipe:
        data = check_recipe(recipe)
        require_id_for_update(data, must_exist)
        fields = data.model_dump(exclude={"id"})

        with self._lock.write_locked():
            recipes = self._read()
            now = self._clock()

            for index, existing in enumerate(recipes):
                if data.id is not None and existing.id == data.id:
                    saved = Recipe(
                        id=existing.id,
                        created_at=existing.created_at,
                        updated_at=next_updated_at(now, existing.updated_at),
                        **fields,
                    )
                    recipes[index] = saved
                    action = "update_recipe"
                    break
            else:
                if must_exist:
                    raise RecipeNotFoundError(data.id)
                saved = Recipe(id=data.id or str(uuid.uuid4()), created_at=now, updated_at=now, **fields)
                recipes.append(saved)
                action = "create_recipe"

            self._write(recipes)

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
        with self._lock.write_locked():
            recipes = self._read()
            remaining = [r for r in recipes if r.id != recipe_id]
            if len(remaining) == len(recipes):
                raise RecipeNotFoundError(recipe_id)
            self._write(remaining)

        logger.info(f"Deleted recipe {recipe_id}", extra={"recipe_id": recipe_id, "action": "delete_recipe"})

    # ----- file access, caller holds the lock -----

    def _read(self) -> List[Recipe]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return _recipe_list.validate_python(raw)
        except OSError as exc:
            raise StorageUnavailableError(f"Failed to read recipes file: {exc}", backend="json") from exc
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StorageUnavailableError(f"Failed to parse recipes file: {exc}", backend="json") from exc

    def _write(self, recipes: List[Recipe]) -> None:
        """Write the collection to a temp file and atomically swap it in."""
        payload = [r.model_dump(mode="json", exclude=_FILE_EXCLUDE) for r in recipes]
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
                delete=False, encoding="utf-8",
            ) as tf:
                tmp_name = tf.name
                json.dump(payload, tf, indent=2, ensure_ascii=False)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageUnavailableError(f"Failed to write recipes file: {exc}", backend="json") from exc
