"""Recipe model"""
from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY

from recipe_api.database import Base

# Native TEXT[] on PostgreSQL; SQLite has no array type so it stores JSON
IngredientList = ARRAY(Text).with_variant(JSON(), "sqlite")


class RecipeRow(Base):
    """Recipe table row.

    Timestamps are written by the store rather than by column defaults so
    that both storage backends stamp records from the same clock.
    """

    __tablename__ = "recipes"
    __table_args__ = (CheckConstraint("servings > 0", name="ck_recipes_servings_positive"),)

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    ingredients = Column(IngredientList, nullable=False)
    instructions = Column(Text, nullable=False)
    cooking_time = Column(String(50), nullable=False)
    servings = Column(Integer, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
