"""Recipes API router.

Read a recipe (through the recipe cache), publish and delete recipes, and
trigger an explicit recompute of a recipe's rating aggregate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.logger import get_logger
from database.database import get_read_session, get_write_session
from schemas.recipe_schema import RecipeCreatedResponse, RecipeCreateRequest, RecipeView
from schemas.review_schema import AuthRequest
from services.recipe_service import create_recipe, delete_recipe, get_recipe, recipe_cache
from services.review_service import refresh_recipe_aggregate

logger = get_logger("api.recipes")
router = APIRouter(prefix="/api", tags=["recipes"])


@router.get("/recipes/{recipe_id}", response_model=RecipeView)
def read_recipe(recipe_id: int, db: Session = Depends(get_read_session)):
    """Return one recipe with nutrition, ingredients and rating aggregate.

    Raises:
        ValidationError: If `recipe_id` is not positive.
        NotFoundError: If the recipe does not exist.
    """
    return get_recipe(db, recipe_id, cache=recipe_cache)


@router.post("/recipes/{recipe_id}/refresh-rating", response_model=RecipeView)
def refresh_rating(recipe_id: int, db: Session = Depends(get_write_session)):
    """Recompute the recipe's aggregate from its current reviews."""
    logger.info("Refreshing rating of recipe %s", recipe_id)
    return refresh_recipe_aggregate(db, recipe_id)


@router.post("/recipes", response_model=RecipeCreatedResponse, status_code=201)
def publish_recipe(payload: RecipeCreateRequest, db: Session = Depends(get_write_session)):
    """Create a recipe authored by the caller.

    Raises:
        PermissionDeniedError: If the user is missing or inactive.
        ValidationError: If the name is blank.
    """
    recipe_id = create_recipe(db, payload.auth, payload)
    return RecipeCreatedResponse(recipe_id=recipe_id)


@router.delete("/recipes/{recipe_id}", status_code=204)
def remove_recipe(recipe_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Delete the caller's recipe with its reviews, likes, ingredients and nutrition."""
    delete_recipe(db, payload.auth, recipe_id)
