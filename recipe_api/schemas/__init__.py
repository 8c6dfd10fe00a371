"""Pydantic schemas for request/response validation"""
from recipe_api.schemas.auth import Identity, LoginRequest, LoginResponse, TokenInfo
from recipe_api.schemas.recipe import APIResponse, Recipe, RecipeBase, RecipeInput

__all__ = [
    "Identity",
    "TokenInfo",
    "LoginRequest",
    "LoginResponse",
    "APIResponse",
    "Recipe",
    "RecipeBase",
    "RecipeInput",
]
