"""Tests for recipe creation, deletion and the recipe view."""
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from database.models import Nutrition, Recipe, RecipeIngredient, Review, ReviewLike
from schemas.recipe_schema import NutritionView, RecipeCreateRequest
from schemas.review_schema import AuthInfo
from services import review_service
from services.recipe_service import RecipeCache, create_recipe, delete_recipe, get_recipe

ALICE = AuthInfo(author_id=1, password="pw1")
BOB = AuthInfo(author_id=2, password="pw2")
DAN = AuthInfo(author_id=4, password="pw4")


def _request(auth, **fields):
    return RecipeCreateRequest(auth=auth, **fields)


def test_create_recipe_starts_with_empty_aggregate(imported):
    request = _request(
        BOB,
        name=" Pancakes ",
        recipe_servings=4,
        ingredients=["Flour", " flour", "Milk", ""],
        nutrition=NutritionView(calories=350, protein_content=9.5),
    )

    recipe_id = create_recipe(imported, BOB, request)

    assert recipe_id == 13
    view = get_recipe(imported, recipe_id)
    assert view.name == "Pancakes"
    assert view.author_name == "Bob"
    assert (view.aggregated_rating, view.review_count) == (Decimal("0.00"), 0)
    assert view.ingredients == ["Flour", "Milk"]
    assert view.nutrition.calories == 350
    assert view.date_published is not None

    review_service.add_review(imported, ALICE, recipe_id, 4)
    assert get_recipe(imported, recipe_id).aggregated_rating == Decimal("4.00")


def test_create_recipe_without_calories_has_no_nutrition_row(imported):
    recipe_id = create_recipe(imported, ALICE, _request(ALICE, name="Water", nutrition=NutritionView()))

    assert imported.get(Nutrition, recipe_id) is None
    assert get_recipe(imported, recipe_id).nutrition == NutritionView()


def test_create_recipe_rejects_blank_name_and_inactive_user(imported):
    with pytest.raises(ValidationError):
        create_recipe(imported, ALICE, _request(ALICE, name="   "))
    with pytest.raises(PermissionDeniedError):
        create_recipe(imported, DAN, _request(DAN, name="Ghost Pie"))
    assert imported.scalar(select(func.count()).select_from(Recipe)) == 3


def test_delete_recipe_removes_everything_hanging_off_it(imported):
    cache = RecipeCache(ttl=60)
    get_recipe(imported, 10, cache=cache)
    imported.rollback()

    delete_recipe(imported, ALICE, 10, cache=cache)

    assert imported.get(Recipe, 10) is None
    assert imported.get(Nutrition, 10) is None
    for model in (Review, RecipeIngredient):
        assert imported.scalars(select(model).where(model.recipe_id == 10)).all() == []
    assert imported.scalars(select(ReviewLike).where(ReviewLike.review_id == 101)).all() == []
    with pytest.raises(NotFoundError):
        get_recipe(imported, 10, cache=cache)
    # other recipes keep their reviews
    assert imported.get(Review, 106) is not None


def test_only_author_may_delete_recipe(imported):
    with pytest.raises(PermissionDeniedError):
        delete_recipe(imported, BOB, 10)
    with pytest.raises(NotFoundError):
        delete_recipe(imported, ALICE, 999)
    assert imported.get(Recipe, 10) is not None
