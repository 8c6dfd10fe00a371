"""Recipe schemas"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class RecipeBase(BaseModel):
    """Mutable recipe fields, shared by input and stored records"""

    name: str = Field(..., min_length=1, max_length=255, description="Recipe name")
    ingredients: List[str] = Field(..., min_length=1, description="Ordered ingredient list")
    instructions: str = Field(..., min_length=1, description="Preparation steps")
    cooking_time: str = Field(..., min_length=1, max_length=50, description="Free-text label, e.g. '10 minutes'")
    servings: int = Field(..., gt=0, description="Number of servings")
    category: str = Field(..., min_length=1, max_length=100, description="Recipe category")


class RecipeInput(RecipeBase):
    """Schema for saving a recipe; an absent id means insert with a generated id"""

    id: Optional[str] = Field(None, min_length=1, max_length=64)


class Recipe(RecipeBase):
    """A stored recipe as returned by every storage backend"""

    id: str
    created_at: datetime
    updated_at: datetime
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    class Config:
        from_attributes = True


class APIResponse(BaseModel):
    """Standard response envelope"""

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None
