"""Reviews API router.

List a recipe's reviews page by page, add, edit and delete reviews (each
refreshes the recipe aggregate in the same transaction) and like/unlike
reviews. The acting user's credentials travel in the request body under
`auth`.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.logger import get_logger
from database.database import get_read_session, get_write_session
from schemas.review_schema import (
    AuthRequest,
    LikeCountResponse,
    ReviewCreatedResponse,
    ReviewCreateRequest,
    ReviewPage,
    ReviewUpdateRequest,
)
from services import review_service

logger = get_logger("api.reviews")
router = APIRouter(prefix="/api", tags=["reviews"])


@router.get("/recipes/{recipe_id}/reviews", response_model=ReviewPage)
def read_reviews(
    recipe_id: int,
    page: int = Query(1, description="1-based page number"),
    size: int = Query(10, description="Reviews per page"),
    sort: str = Query("date_desc", description="date_desc or likes_desc"),
    db: Session = Depends(get_read_session),
):
    """Return one page of the recipe's reviews with the ids of their likers."""
    return review_service.list_reviews(db, recipe_id, page=page, size=size, sort=sort)


@router.post("/recipes/{recipe_id}/reviews", response_model=ReviewCreatedResponse, status_code=201)
def create_review(recipe_id: int, payload: ReviewCreateRequest, db: Session = Depends(get_write_session)):
    """Add a review to a recipe.

    Args:
        recipe_id: Recipe being reviewed.
        payload: `ReviewCreateRequest` with auth, rating (1-5) and text.
        db: Write session injected by dependency.

    Returns:
        `ReviewCreatedResponse` with the new review id.

    Raises:
        PermissionDeniedError: If the user is missing or inactive.
        ValidationError: If the rating is outside 1-5.
        NotFoundError: If the recipe does not exist.
    """
    review_id = review_service.add_review(db, payload.auth, recipe_id, payload.rating, payload.review)
    return ReviewCreatedResponse(review_id=review_id)


@router.put("/recipes/{recipe_id}/reviews/{review_id}", status_code=204)
def update_review(recipe_id: int, review_id: int, payload: ReviewUpdateRequest, db: Session = Depends(get_write_session)):
    """Edit the caller's own review."""
    review_service.edit_review(db, payload.auth, recipe_id, review_id, payload.rating, payload.review)


@router.delete("/recipes/{recipe_id}/reviews/{review_id}", status_code=204)
def remove_review(recipe_id: int, review_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Delete the caller's own review and its likes."""
    review_service.delete_review(db, payload.auth, recipe_id, review_id)


@router.post("/reviews/{review_id}/likes", response_model=LikeCountResponse)
def like(review_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Like a review; returns the like count."""
    likes = review_service.like_review(db, payload.auth, review_id)
    return LikeCountResponse(review_id=review_id, likes=likes)


@router.delete("/reviews/{review_id}/likes", response_model=LikeCountResponse)
def unlike(review_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Remove the caller's like; returns the like count."""
    likes = review_service.unlike_review(db, payload.auth, review_id)
    return LikeCountResponse(review_id=review_id, likes=likes)
