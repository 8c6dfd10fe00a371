"""Database models"""
from recipe_api.models.recipe import RecipeRow
from recipe_api.models.user import User

__all__ = ["RecipeRow", "User"]
