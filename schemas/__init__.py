"""Pydantic schema package for request and response models."""

from .records import ImportRequest, ImportSummary, RecipeRecord, ReviewRecord, UserRecord
from .recipe_schema import NutritionView, RecipeCreateRequest, RecipeView
from .review_schema import AuthInfo, AuthRequest, ReviewCreateRequest, ReviewPage, ReviewUpdateRequest, ReviewView
from .user_schema import RegisterUserRequest, UserView

__all__ = [
    "ImportRequest",
    "ImportSummary",
    "UserRecord",
    "RecipeRecord",
    "ReviewRecord",
    "NutritionView",
    "RecipeCreateRequest",
    "RecipeView",
    "AuthInfo",
    "AuthRequest",
    "ReviewCreateRequest",
    "ReviewUpdateRequest",
    "ReviewView",
    "ReviewPage",
    "RegisterUserRequest",
    "UserView",
]
