"""Recipe read view, its read-through cache, and recipe creation and deletion.

`get_recipe` assembles a `RecipeView` from the recipe row, its author,
nutrition facts and ingredients. `RecipeCache` is a small in-process TTL
cache in front of it; any failure inside the cache is logged and treated
as a miss so reads keep working without it. New recipes start with the
empty aggregate (0.00, 0); deleting a recipe removes its reviews, their
likes, its ingredients and its nutrition facts with it.
"""

import os
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from core.exceptions import PermissionDeniedError, ValidationError
from core.logger import get_logger
from core.repository import BaseRepository
from data.normalize_records import extract_ingredients
from database.database import transaction
from database.models import Nutrition, Recipe, RecipeIngredient, Review, ReviewLike, User
from schemas.recipe_schema import NutritionView, RecipeCreateRequest, RecipeView
from schemas.review_schema import AuthInfo
from services.auth import require_active_user

logger = get_logger("services.recipe_service")

RECIPE_CACHE_TTL = int(os.getenv("RECIPE_CACHE_TTL", "300"))

_NUTRIENTS = tuple(NutritionView.model_fields)


class RecipeCache:
    """Key/value store with per-entry TTL and hit/miss counters.

    A TTL of 0 disables caching.
    """

    def __init__(self, ttl: int = RECIPE_CACHE_TTL):
        self.ttl = ttl
        self._store: Dict[Any, Dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, key) -> Optional[RecipeView]:
        if not self.enabled:
            return None
        try:
            entry = self._store.get(key)
            if entry and time.monotonic() - entry["created_at"] < self.ttl:
                self.hits += 1
                return entry["value"].model_copy(deep=True)
            if entry:
                del self._store[key]
        except Exception as exc:
            logger.warning("Recipe cache read failed for %s: %s", key, exc)
        self.misses += 1
        return None

    def set(self, key, value: RecipeView) -> None:
        if not self.enabled:
            return
        try:
            self._store[key] = {"value": value.model_copy(deep=True), "created_at": time.monotonic()}
        except Exception as exc:
            logger.warning("Recipe cache write failed for %s: %s", key, exc)

    def invalidate(self, key) -> None:
        try:
            self._store.pop(key, None)
        except Exception as exc:
            logger.warning("Recipe cache invalidation failed for %s: %s", key, exc)

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "size": len(self._store),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._store.clear()
        self.hits = 0
        self.misses = 0


def build_recipe_view(session: Session, recipe: Recipe) -> RecipeView:
    """Assemble the read view of a loaded recipe row."""
    author = session.get(User, recipe.author_id)
    nutrition = session.get(Nutrition, recipe.recipe_id)
    ingredients = session.scalars(
        select(RecipeIngredient.ingredient_part)
        .where(RecipeIngredient.recipe_id == recipe.recipe_id)
        .order_by(RecipeIngredient.ingredient_part)
    ).all()

    facts = NutritionView()
    if nutrition is not None:
        facts = NutritionView(**{
            name: getattr(nutrition, name) or 0.0 for name in _NUTRIENTS
        })

    return RecipeView(
        recipe_id=recipe.recipe_id,
        author_id=recipe.author_id,
        author_name=author.author_name if author else None,
        name=recipe.name,
        cook_time=recipe.cook_time,
        prep_time=recipe.prep_time,
        total_time=recipe.total_time,
        date_published=recipe.date_published,
        description=recipe.description,
        recipe_category=recipe.recipe_category,
        recipe_servings=recipe.recipe_servings,
        recipe_yield=recipe.recipe_yield,
        aggregated_rating=recipe.aggregated_rating if recipe.aggregated_rating is not None else Decimal("0.00"),
        review_count=recipe.review_count or 0,
        nutrition=facts,
        ingredients=list(ingredients),
    )


def get_recipe(session: Session, recipe_id: int, cache: Optional[RecipeCache] = None) -> RecipeView:
    """Return the view of one recipe, reading through `cache` when given.

    Raises:
        ValidationError: If `recipe_id` is not positive.
        NotFoundError: If the recipe does not exist.
    """
    if recipe_id <= 0:
        raise ValidationError("recipe_id must be positive", field="recipe_id")

    if cache is not None:
        cached = cache.get(recipe_id)
        if cached is not None:
            return cached

    recipe = BaseRepository(Recipe, session).require(recipe_id)
    view = build_recipe_view(session, recipe)
    if cache is not None:
        cache.set(recipe_id, view)
    return view


recipe_cache = RecipeCache()


def create_recipe(session: Session, auth: AuthInfo, request: RecipeCreateRequest) -> int:
    """Publish a recipe authored by the acting user.

    Returns:
        Id of the new recipe (current maximum + 1).

    Raises:
        PermissionDeniedError: If the acting user is missing or inactive.
        ValidationError: If the name is blank.
    """
    name = (request.name or "").strip()
    with transaction(session, operation="create_recipe"):
        user = require_active_user(session, auth)
        if not name:
            raise ValidationError("recipe name must not be blank", field="name")

        repo = BaseRepository(Recipe, session)
        recipe = repo.add(Recipe(
            recipe_id=repo.next_id(),
            author_id=user.author_id,
            name=name,
            cook_time=request.cook_time,
            prep_time=request.prep_time,
            total_time=request.total_time,
            date_published=request.date_published or datetime.now(),
            description=request.description,
            recipe_category=request.recipe_category,
            recipe_servings=request.recipe_servings,
            recipe_yield=request.recipe_yield,
            aggregated_rating=Decimal("0.00"),
            review_count=0,
        ))
        recipe_id = recipe.recipe_id

        facts = request.nutrition
        if facts is not None and facts.calories > 0:
            session.add(Nutrition(recipe_id=recipe_id, **facts.model_dump()))
        for part in extract_ingredients(request.ingredients):
            session.add(RecipeIngredient(recipe_id=recipe_id, ingredient_part=part))
        session.flush()

    logger.info("User %s created recipe %s", auth.author_id, recipe_id)
    return recipe_id


def delete_recipe(
    session: Session,
    auth: AuthInfo,
    recipe_id: int,
    cache: RecipeCache = recipe_cache,
) -> None:
    """Delete one of the caller's recipes with everything hanging off it.

    Raises:
        PermissionDeniedError: If the caller is inactive or not the author.
        NotFoundError: If the recipe does not exist.
    """
    with transaction(session, operation="delete_recipe"):
        user = require_active_user(session, auth)
        recipe = BaseRepository(Recipe, session).require(recipe_id)
        if recipe.author_id != user.author_id:
            raise PermissionDeniedError("Only the recipe author can delete the recipe", user_id=user.author_id)

        review_ids = select(Review.review_id).where(Review.recipe_id == recipe_id)
        session.execute(delete(ReviewLike).where(ReviewLike.review_id.in_(review_ids)))
        session.execute(delete(Review).where(Review.recipe_id == recipe_id))
        session.execute(delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe_id))
        session.execute(delete(Nutrition).where(Nutrition.recipe_id == recipe_id))
        BaseRepository(Recipe, session).delete(recipe)

    cache.invalidate(recipe_id)
    logger.info("User %s deleted recipe %s", auth.author_id, recipe_id)
