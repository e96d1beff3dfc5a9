"""Typed rows produced by the record normalizer, one class per table.

Field names match the column names in `database.models`, so `asdict(row)`
is directly an insert parameter set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class UserRow:
    author_id: int
    author_name: str
    gender: str | None = None
    age: int | None = None
    password: str | None = None
    is_deleted: bool = False


@dataclass(slots=True, frozen=True)
class RecipeRow:
    recipe_id: int
    author_id: int
    name: str
    cook_time: str | None = None
    prep_time: str | None = None
    total_time: str | None = None
    date_published: datetime | None = None
    description: str | None = None
    recipe_category: str | None = None
    recipe_servings: int | None = None
    recipe_yield: str | None = None


@dataclass(slots=True, frozen=True)
class NutritionRow:
    recipe_id: int
    calories: float
    fat_content: float | None = None
    saturated_fat_content: float | None = None
    cholesterol_content: float | None = None
    sodium_content: float | None = None
    carbohydrate_content: float | None = None
    fiber_content: float | None = None
    sugar_content: float | None = None
    protein_content: float | None = None


@dataclass(slots=True, frozen=True)
class IngredientRow:
    recipe_id: int
    ingredient_part: str


@dataclass(slots=True, frozen=True)
class ReviewRow:
    review_id: int
    recipe_id: int
    author_id: int
    rating: int
    review: str | None = None
    date_submitted: datetime | None = None
    date_modified: datetime | None = None


@dataclass(slots=True, frozen=True)
class ReviewLikeRow:
    review_id: int
    author_id: int


@dataclass(slots=True, frozen=True)
class FollowRow:
    follower_id: int
    following_id: int


@dataclass(slots=True)
class NormalizedDataset:
    """All typed rows of one import, plus per-collection skip counts."""

    users: list[UserRow] = field(default_factory=list)
    recipes: list[RecipeRow] = field(default_factory=list)
    nutrition: list[NutritionRow] = field(default_factory=list)
    ingredients: list[IngredientRow] = field(default_factory=list)
    reviews: list[ReviewRow] = field(default_factory=list)
    review_likes: list[ReviewLikeRow] = field(default_factory=list)
    follows: list[FollowRow] = field(default_factory=list)
    skipped: dict[str, int] = field(default_factory=lambda: {"users": 0, "recipes": 0, "reviews": 0})

    def counts(self) -> dict[str, int]:
        return {
            "users": len(self.users),
            "recipes": len(self.recipes),
            "nutrition": len(self.nutrition),
            "ingredients": len(self.ingredients),
            "reviews": len(self.reviews),
            "review_likes": len(self.review_likes),
            "follows": len(self.follows),
        }
