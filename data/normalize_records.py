"""Normalize raw user, recipe and review records into typed table rows.

This module provides:
- clamp_rating(raw): clamps a raw rating into [0, 5] and rounds it half-up
- parse_servings(value): resolves a free-form servings cell to an int or None
- extract_ingredients(parts): trimmed, deduplicated, order-preserving ingredients
- normalize_records(users, recipes, reviews): builds a `NormalizedDataset`

Malformed rows (missing required fields, non-positive identifiers, values
that fail schema validation) are skipped with a warning; a normalization
pass never aborts because of a single row.
"""
from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

import pydantic

from core.logger import get_logger
from schemas.records import RecipeRecord, ReviewRecord, UserRecord
from schemas.rows import (
    FollowRow,
    IngredientRow,
    NormalizedDataset,
    NutritionRow,
    RecipeRow,
    ReviewLikeRow,
    ReviewRow,
    UserRow,
)

logger = get_logger("data.normalize_records")

MIN_RATING = 0
MAX_RATING = 5
GENDERS = {"male": "Male", "female": "Female"}


def clamp_rating(raw: Optional[float]) -> int:
    """Clamp a raw rating into [0, 5] and round it to the nearest integer.

    Args:
        raw: Rating as found in the input; None is treated as 0.

    Returns:
        The persisted integer rating.
    """
    if raw is None:
        return MIN_RATING
    value = min(max(Decimal(str(raw)), Decimal(MIN_RATING)), Decimal(MAX_RATING))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_servings(value: Any) -> Optional[int]:
    """Resolve a servings cell (int, float or string) to an int.

    Unparseable values become None rather than an error.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or number != int(number):
        return None
    return int(number)


def extract_ingredients(parts: Iterable[Optional[str]]) -> List[str]:
    """Return the unique, trimmed ingredient strings of a recipe.

    The first spelling of an ingredient is kept verbatim; later entries that
    only differ by surrounding whitespace or letter case are dropped.
    """
    seen = set()
    result = []
    for part in parts or []:
        if part is None:
            continue
        text = part.strip()
        if not text:
            continue
        key = text.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return result


def _positive(value: Optional[int]) -> bool:
    return value is not None and value > 0


def _validate(model, raw: Any, kind: str, index: int):
    """Validate one raw entry into `model`, or log and return None."""
    if isinstance(raw, model):
        return raw
    if isinstance(raw, pydantic.BaseModel):
        raw = raw.model_dump()
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as exc:
        logger.warning("Skipping %s #%s: %s", kind, index, exc.errors()[0].get("msg"))
        return None


def _normalize_gender(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return GENDERS.get(value.strip().lower())


def _normalize_users(raw_users: Iterable[Any], out: NormalizedDataset) -> None:
    for index, raw in enumerate(raw_users or []):
        record = _validate(UserRecord, raw, "user", index)
        if record is None:
            out.skipped["users"] += 1
            continue
        if not _positive(record.author_id):
            logger.warning("Skipping user #%s: non-positive AuthorId %r", index, record.author_id)
            out.skipped["users"] += 1
            continue
        name = (record.author_name or "").strip()
        if not name:
            logger.warning("Skipping user %s: missing AuthorName", record.author_id)
            out.skipped["users"] += 1
            continue

        # Truncate first, so 0.5 ends up absent instead of 0.
        age = int(record.age) if record.age is not None and math.isfinite(record.age) else None
        if age is not None and age <= 0:
            age = None
        out.users.append(UserRow(
            author_id=record.author_id,
            author_name=name,
            gender=_normalize_gender(record.gender),
            age=age,
            password=record.password,
            is_deleted=bool(record.is_deleted),
        ))

        # Both lists become directed edges; duplicates collapse on insert.
        me = record.author_id
        for follower in record.follower_users:
            if _positive(follower) and follower != me:
                out.follows.append(FollowRow(follower_id=follower, following_id=me))
        for followee in record.following_users:
            if _positive(followee) and followee != me:
                out.follows.append(FollowRow(follower_id=me, following_id=followee))


def _normalize_recipes(raw_recipes: Iterable[Any], out: NormalizedDataset) -> None:
    for index, raw in enumerate(raw_recipes or []):
        record = _validate(RecipeRecord, raw, "recipe", index)
        if record is None:
            out.skipped["recipes"] += 1
            continue
        if not _positive(record.recipe_id) or not _positive(record.author_id):
            logger.warning(
                "Skipping recipe #%s: invalid RecipeId %r or AuthorId %r",
                index, record.recipe_id, record.author_id,
            )
            out.skipped["recipes"] += 1
            continue
        name = (record.name or "").strip()
        if not name:
            logger.warning("Skipping recipe %s: missing Name", record.recipe_id)
            out.skipped["recipes"] += 1
            continue

        out.recipes.append(RecipeRow(
            recipe_id=record.recipe_id,
            author_id=record.author_id,
            name=name,
            cook_time=record.cook_time,
            prep_time=record.prep_time,
            total_time=record.total_time,
            date_published=record.date_published,
            description=record.description,
            recipe_category=record.recipe_category,
            recipe_servings=parse_servings(record.recipe_servings),
            recipe_yield=record.recipe_yield,
        ))

        if record.calories is not None and record.calories > 0:
            out.nutrition.append(NutritionRow(
                recipe_id=record.recipe_id,
                calories=record.calories,
                fat_content=record.fat_content,
                saturated_fat_content=record.saturated_fat_content,
                cholesterol_content=record.cholesterol_content,
                sodium_content=record.sodium_content,
                carbohydrate_content=record.carbohydrate_content,
                fiber_content=record.fiber_content,
                sugar_content=record.sugar_content,
                protein_content=record.protein_content,
            ))

        for part in extract_ingredients(record.recipe_ingredient_parts):
            out.ingredients.append(IngredientRow(recipe_id=record.recipe_id, ingredient_part=part))


def _normalize_reviews(raw_reviews: Iterable[Any], out: NormalizedDataset) -> None:
    for index, raw in enumerate(raw_reviews or []):
        record = _validate(ReviewRecord, raw, "review", index)
        if record is None:
            out.skipped["reviews"] += 1
            continue
        if not (_positive(record.review_id) and _positive(record.recipe_id) and _positive(record.author_id)):
            logger.warning(
                "Skipping review #%s: invalid ReviewId %r, RecipeId %r or AuthorId %r",
                index, record.review_id, record.recipe_id, record.author_id,
            )
            out.skipped["reviews"] += 1
            continue

        out.reviews.append(ReviewRow(
            review_id=record.review_id,
            recipe_id=record.recipe_id,
            author_id=record.author_id,
            rating=clamp_rating(record.rating),
            review=record.review,
            date_submitted=record.date_submitted,
            date_modified=record.date_modified,
        ))
        for liker in record.likes:
            if _positive(liker):
                out.review_likes.append(ReviewLikeRow(review_id=record.review_id, author_id=liker))


def normalize_records(
    users: Iterable[Any] = (),
    recipes: Iterable[Any] = (),
    reviews: Iterable[Any] = (),
) -> NormalizedDataset:
    """Split the three raw collections into typed rows for every table.

    Args:
        users: Raw user entries (dicts or `UserRecord`).
        recipes: Raw recipe entries (dicts or `RecipeRecord`).
        reviews: Raw review entries (dicts or `ReviewRecord`).

    Returns:
        A `NormalizedDataset` with the rows and per-collection skip counts.
    """
    dataset = NormalizedDataset()
    _normalize_users(users, dataset)
    _normalize_recipes(recipes, dataset)
    _normalize_reviews(reviews, dataset)
    logger.info("Normalized records: %s (skipped %s)", dataset.counts(), dataset.skipped)
    return dataset
