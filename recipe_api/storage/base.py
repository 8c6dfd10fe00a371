"""Recipe storage contract shared by every backend"""
from datetime import datetime, timedelta
from typing import List, Optional, Protocol

from pydantic import ValidationError

from recipe_api.exceptions import RecipeValidationError
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import Recipe, RecipeInput

_TICK = timedelta(microseconds=1)


class RecipeStore(Protocol):
    """Durable recipe persistence.

    Every implementation must behave identically:

    - listings are ordered newest ``created_at`` first and fully materialized
    - ``get_recipe`` and ``delete_recipe`` raise ``RecipeNotFoundError``
    - ``save_recipe`` upserts by id, keeping ``created_at`` on update; with
      ``must_exist`` it only updates, and a missing id raises
      ``RecipeNotFoundError`` from inside the same write
    - I/O failures raise ``StorageUnavailableError``, never ``NotFoundError``
    """

    def list_recipes(self) -> List[Recipe]: ...

    def get_recipe(self, recipe_id: str) -> Recipe: ...

    def save_recipe(
        self, recipe: RecipeInput, identity: Optional[Identity] = None, must_exist: bool = False
    ) -> Recipe: ...

    def delete_recipe(self, recipe_id: str) -> None: ...

    def list_by_category(self, category: str) -> List[Recipe]: ...

    def search(self, term: str) -> List[Recipe]: ...

    def ping(self) -> None: ...


def check_recipe(recipe: RecipeInput) -> RecipeInput:
    """Re-run schema validation so unvalidated models never reach storage."""
    try:
        return RecipeInput.model_validate(recipe.model_dump())
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise RecipeValidationError(f"{field}: {error['msg']}", field=field) from exc


def require_id_for_update(recipe: RecipeInput, must_exist: bool) -> None:
    if must_exist and not recipe.id:
        raise RecipeValidationError("id: required for an update", field="id")


def newest_first(recipes: List[Recipe]) -> List[Recipe]:
    # sorted() is stable, so ties keep their stored order
    return sorted(recipes, key=lambda r: r.created_at, reverse=True)


def matches_search(recipe: Recipe, term: str) -> bool:
    """Case-insensitive substring of the name, or an exact ingredient."""
    return term.lower() in recipe.name.lower() or term in recipe.ingredients


def next_updated_at(now: datetime, previous: datetime) -> datetime:
    """Modification time for an update; strictly later than the previous one."""
    return now if now > previous else previous + _TICK
