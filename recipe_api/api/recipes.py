"""Recipe endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from recipe_api.api.deps import get_recipe_store, require_user
from recipe_api.middleware.rate_limit import get_rate_limit, limiter
from recipe_api.schemas.auth import Identity
from recipe_api.schemas.recipe import APIResponse, RecipeInput
from recipe_api.storage.base import RecipeStore

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


@router.get("", response_model=APIResponse)
@limiter.limit(get_rate_limit("recipes_read"))
def list_recipes(
    request: Request,
    category: Optional[str] = Query(None, description="Exact category match"),
    search: Optional[str] = Query(None, description="Name substring or exact ingredient"),
    store: RecipeStore = Depends(get_recipe_store),
    _: Optional[Identity] = Depends(require_user),
):
    """
    List recipes, newest first

    Query parameters:
    - category: only recipes in this category
    - search: case-insensitive name substring, or an exact ingredient (must not be blank)
    """
    if category is not None and search is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use either 'category' or 'search', not both",
        )

    if search is not None and not search.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search term must not be blank",
        )

    if category is not None:
        recipes = store.list_by_category(category)
    elif search is not None:
        recipes = store.search(search)
    else:
        recipes = store.list_recipes()

    return APIResponse(success=True, message="Recipes retrieved successfully", data=recipes)


@router.post("", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_rate_limit("recipes_write"))
def create_recipe(
    request: Request,
    recipe: RecipeInput,
    store: RecipeStore = Depends(get_recipe_store),
    identity: Optional[Identity] = Depends(require_user),
):
    """
    Create a recipe

    The server assigns the id and both timestamps; any id in the body is ignored.
    """
    saved = store.save_recipe(recipe.model_copy(update={"id": None}), identity)
    return APIResponse(success=True, message="Recipe created successfully", data=saved)


@router.put("", response_model=APIResponse)
@limiter.limit(get_rate_limit("recipes_write"))
def update_recipe(
    request: Request,
    recipe: RecipeInput,
    store: RecipeStore = Depends(get_recipe_store),
    identity: Optional[Identity] = Depends(require_user),
):
    """
    Update an existing recipe

    The body must carry the id of a stored recipe. The creation time is kept.
    """
    if not recipe.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Recipe ID is required",
        )

    # Existence is checked inside the store write; a missing id is a 404 with nothing written
    saved = store.save_recipe(recipe, identity, must_exist=True)
    return APIResponse(success=True, message="Recipe updated successfully", data=saved)


@router.get("/{recipe_id}", response_model=APIResponse)
@limiter.limit(get_rate_limit("recipes_read"))
def get_recipe(
    request: Request,
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    _: Optional[Identity] = Depends(require_user),
):
    """
    Get recipe by ID
    """
    recipe = store.get_recipe(recipe_id)
    return APIResponse(success=True, message="Recipe retrieved successfully", data=recipe)


@router.delete("/{recipe_id}", response_model=APIResponse)
@limiter.limit(get_rate_limit("recipes_write"))
def delete_recipe(
    request: Request,
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    _: Optional[Identity] = Depends(require_user),
):
    """
    Delete a recipe permanently
    """
    store.delete_recipe(recipe_id)
    return APIResponse(success=True, message="Recipe deleted successfully")
