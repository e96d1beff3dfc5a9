"""Aggregate maintainer: keeps recipe rating aggregates in line with reviews.

A recipe's aggregate is the mean of its reviews with a positive rating,
rounded half-up to two decimals, together with the number of those
reviews. Recipes without positive-rated reviews carry the zero sentinel
(0.00, 0). Nothing here commits; callers run these functions inside their
own unit of work.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.repository import BaseRepository
from database.models import Recipe, Review
from schemas.recipe_schema import RecipeView
from services.recipe_service import build_recipe_view

logger = get_logger("services.aggregate_maintainer")

EMPTY_RATING = Decimal("0.00")
_TWO_PLACES = Decimal("0.01")
SWEEP_BATCH_SIZE = 1000


def compute_aggregate(count: int, total) -> Tuple[Decimal, int]:
    """Return (aggregated_rating, review_count) for `count` positive ratings summing to `total`."""
    count = int(count or 0)
    if count == 0:
        return EMPTY_RATING, 0
    mean = Decimal(total) / Decimal(count)
    return mean.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), count


def _positive_ratings(recipe_id: int):
    return (
        select(func.count(Review.review_id), func.coalesce(func.sum(Review.rating), 0))
        .where(Review.recipe_id == recipe_id, Review.rating > 0)
    )


def recompute(session: Session, recipe_id: int) -> RecipeView:
    """Recompute and write the aggregate of one recipe.

    The recipe row is locked first so that concurrent recomputes of the
    same recipe serialize.

    Args:
        session: Session of the caller's unit of work.
        recipe_id: Recipe to refresh.

    Returns:
        The refreshed `RecipeView`.

    Raises:
        NotFoundError: If the recipe does not exist.
    """
    recipe = BaseRepository(Recipe, session).require(recipe_id, for_update=True)
    count, total = session.execute(_positive_ratings(recipe_id)).one()
    rating, count = compute_aggregate(count, total)
    recipe.aggregated_rating = rating
    recipe.review_count = count
    session.flush()
    logger.debug("Recipe %s aggregate: rating=%s count=%s", recipe_id, rating, count)
    return build_recipe_view(session, recipe)


def recompute_all(session: Session, batch_size: int = SWEEP_BATCH_SIZE) -> int:
    """Recompute the aggregate of every recipe in one sweep.

    Every recipe is first reset to the zero sentinel; then the grouped
    aggregate of each recipe that has positive-rated reviews is written.

    Returns:
        Number of recipes that ended up with a non-sentinel aggregate.
    """
    session.execute(
        update(Recipe)
        .values(aggregated_rating=EMPTY_RATING, review_count=0)
        .execution_options(synchronize_session=False)
    )

    grouped = session.execute(
        select(Review.recipe_id, func.count(Review.review_id), func.sum(Review.rating))
        .where(Review.rating > 0)
        .group_by(Review.recipe_id)
    ).all()

    params = []
    for recipe_id, count, total in grouped:
        rating, count = compute_aggregate(count, total)
        params.append({"recipe_id": recipe_id, "aggregated_rating": rating, "review_count": count})

    for start in range(0, len(params), batch_size):
        session.execute(update(Recipe), params[start:start + batch_size])

    session.expire_all()
    logger.info("Aggregate sweep finished: %s rated recipes", len(params))
    return len(params)
