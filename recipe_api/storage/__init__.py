"""Recipe storage backends"""
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from recipe_api.config import Settings
from recipe_api.storage.base import RecipeStore
from recipe_api.storage.json_store import JSONRecipeStore
from recipe_api.storage.sql_store import SQLRecipeStore
from recipe_api.utils.auth import utcnow


def build_recipe_store(
    config: Settings,
    session_factory: Optional[sessionmaker] = None,
    clock: Callable[[], datetime] = utcnow,
) -> RecipeStore:
    """Construct the backend named by ``STORAGE_BACKEND``."""
    if config.STORAGE_BACKEND == "database":
        if session_factory is None:
            raise ValueError("database storage requires a session factory")
        return SQLRecipeStore(session_factory, clock=clock)
    return JSONRecipeStore(config.RECIPES_FILE, clock=clock)


__all__ = ["RecipeStore", "JSONRecipeStore", "SQLRecipeStore", "build_recipe_store"]
