"""Schemas for recipe read views and recipe creation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from .review_schema import AuthInfo


class NutritionView(BaseModel):
    """Nutrition facts of a recipe; zeros when the recipe has none."""

    calories: float = 0.0
    fat_content: float = 0.0
    saturated_fat_content: float = 0.0
    cholesterol_content: float = 0.0
    sodium_content: float = 0.0
    carbohydrate_content: float = 0.0
    fiber_content: float = 0.0
    sugar_content: float = 0.0
    protein_content: float = 0.0


class RecipeView(BaseModel):
    """Refreshed recipe returned by reads and by aggregate recomputes."""

    recipe_id: int
    author_id: int
    author_name: Optional[str] = None
    name: str
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    total_time: Optional[str] = None
    date_published: Optional[datetime] = None
    description: Optional[str] = None
    recipe_category: Optional[str] = None
    recipe_servings: Optional[int] = None
    recipe_yield: Optional[str] = None
    aggregated_rating: Decimal = Field(Decimal("0.00"), description="Mean of positive ratings, 2 decimals")
    review_count: int = Field(0, ge=0, description="Number of reviews with a positive rating")
    nutrition: NutritionView = Field(default_factory=NutritionView)
    ingredients: List[str] = Field(default_factory=list)

    @field_serializer("aggregated_rating")
    def _rating_as_number(self, value: Decimal) -> float:
        return float(value)


class RecipeCreateRequest(BaseModel):
    """Payload for publishing a new recipe as the acting user."""

    auth: AuthInfo
    name: str = Field(..., examples=["Tomato Soup"])
    cook_time: Optional[str] = Field(None, examples=["PT30M"])
    prep_time: Optional[str] = Field(None, examples=["PT10M"])
    total_time: Optional[str] = None
    date_published: Optional[datetime] = Field(None, description="Defaults to now")
    description: Optional[str] = None
    recipe_category: Optional[str] = None
    recipe_servings: Optional[int] = Field(None, gt=0)
    recipe_yield: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list, description="Trimmed and deduplicated on save")
    nutrition: Optional[NutritionView] = Field(None, description="Stored only when calories are positive")


class RecipeCreatedResponse(BaseModel):
    """Id of a newly created recipe."""

    recipe_id: int
