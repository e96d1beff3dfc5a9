"""Review and like mutations, and the paged review list of a recipe.

Every review mutation is one unit of work that ends by recomputing the
affected recipe's aggregate before the commit, so the review change and
the new aggregate become visible together. Likes never touch the
aggregate.
"""

from collections import defaultdict
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.logger import get_logger
from core.repository import BaseRepository
from database.database import transaction
from database.models import Recipe, Review, ReviewLike, User
from schemas.recipe_schema import RecipeView
from schemas.review_schema import AuthInfo, ReviewPage, ReviewView
from services.aggregate_maintainer import recompute
from services.auth import require_active_user
from services.recipe_service import RecipeCache, recipe_cache

logger = get_logger("services.review_service")

REVIEW_SORTS = ("date_desc", "likes_desc")


def _check_rating(rating: int) -> None:
    if rating is None or rating < 1 or rating > 5:
        raise ValidationError("rating must be between 1 and 5", field="rating")


def _review_of_recipe(session: Session, recipe_id: int, review_id: int) -> Review:
    review = session.get(Review, review_id)
    if review is None or review.recipe_id != recipe_id:
        raise NotFoundError("Review", review_id)
    return review


def _like_count(session: Session, review_id: int) -> int:
    return session.scalar(
        select(func.count()).select_from(ReviewLike).where(ReviewLike.review_id == review_id)
    ) or 0


def add_review(
    session: Session,
    auth: AuthInfo,
    recipe_id: int,
    rating: int,
    review: Optional[str] = None,
    cache: RecipeCache = recipe_cache,
) -> int:
    """Store a new review and refresh the recipe aggregate.

    Returns:
        Id of the new review (current maximum + 1).

    Raises:
        PermissionDeniedError: If the acting user is missing or inactive.
        ValidationError: If the rating is outside 1..5.
        NotFoundError: If the recipe does not exist.
    """
    with transaction(session, operation="add_review"):
        user = require_active_user(session, auth)
        _check_rating(rating)
        BaseRepository(Recipe, session).require(recipe_id)

        repo = BaseRepository(Review, session)
        now = datetime.now()
        new_review = repo.add(Review(
            review_id=repo.next_id(),
            recipe_id=recipe_id,
            author_id=user.author_id,
            rating=rating,
            review=review,
            date_submitted=now,
            date_modified=now,
        ))
        review_id = new_review.review_id
        recompute(session, recipe_id)

    cache.invalidate(recipe_id)
    logger.info("User %s added review %s to recipe %s", auth.author_id, review_id, recipe_id)
    return review_id


def edit_review(
    session: Session,
    auth: AuthInfo,
    recipe_id: int,
    review_id: int,
    rating: int,
    review: Optional[str] = None,
    cache: RecipeCache = recipe_cache,
) -> None:
    """Change the rating and text of the caller's own review.

    Raises:
        PermissionDeniedError: If the caller is inactive or not the author.
        ValidationError: If the rating is outside 1..5.
        NotFoundError: If the review does not belong to the recipe.
    """
    with transaction(session, operation="edit_review"):
        user = require_active_user(session, auth)
        _check_rating(rating)
        target = _review_of_recipe(session, recipe_id, review_id)
        if target.author_id != user.author_id:
            raise PermissionDeniedError("Only the review author can edit the review", user_id=user.author_id)

        target.rating = rating
        target.review = review
        target.date_modified = datetime.now()
        session.flush()
        recompute(session, recipe_id)

    cache.invalidate(recipe_id)
    logger.info("User %s edited review %s", auth.author_id, review_id)


def delete_review(
    session: Session,
    auth: AuthInfo,
    recipe_id: int,
    review_id: int,
    cache: RecipeCache = recipe_cache,
) -> None:
    """Delete the caller's own review together with its likes.

    Raises:
        PermissionDeniedError: If the caller is inactive or not the author.
        NotFoundError: If the review does not belong to the recipe.
    """
    with transaction(session, operation="delete_review"):
        user = require_active_user(session, auth)
        target = _review_of_recipe(session, recipe_id, review_id)
        if target.author_id != user.author_id:
            raise PermissionDeniedError("Only the review author can delete the review", user_id=user.author_id)

        session.execute(delete(ReviewLike).where(ReviewLike.review_id == review_id))
        BaseRepository(Review, session).delete(target)
        recompute(session, recipe_id)

    cache.invalidate(recipe_id)
    logger.info("User %s deleted review %s", auth.author_id, review_id)


def refresh_recipe_aggregate(
    session: Session,
    recipe_id: int,
    cache: RecipeCache = recipe_cache,
) -> RecipeView:
    """Recompute one recipe's aggregate as its own unit of work."""
    with transaction(session, operation="refresh_recipe_aggregate"):
        view = recompute(session, recipe_id)
    cache.invalidate(recipe_id)
    return view


def like_review(session: Session, auth: AuthInfo, review_id: int) -> int:
    """Like someone else's review; liking twice is a no-op.

    Returns:
        The review's like count afterwards.

    Raises:
        PermissionDeniedError: Inactive user, wrong password or own review.
        NotFoundError: If the review does not exist.
    """
    with transaction(session, operation="like_review"):
        user = require_active_user(session, auth, check_password=True)
        target = BaseRepository(Review, session).require(review_id)
        if target.author_id == user.author_id:
            raise PermissionDeniedError("Users cannot like their own review", user_id=user.author_id)

        if session.get(ReviewLike, (review_id, user.author_id)) is None:
            session.add(ReviewLike(review_id=review_id, author_id=user.author_id))
            session.flush()
        likes = _like_count(session, review_id)
    return likes


def unlike_review(session: Session, auth: AuthInfo, review_id: int) -> int:
    """Remove the caller's like from a review if present.

    Returns:
        The review's like count afterwards.
    """
    with transaction(session, operation="unlike_review"):
        user = require_active_user(session, auth, check_password=True)
        BaseRepository(Review, session).require(review_id)
        session.execute(
            delete(ReviewLike).where(
                ReviewLike.review_id == review_id,
                ReviewLike.author_id == user.author_id,
            )
        )
        likes = _like_count(session, review_id)
    return likes


def list_reviews(
    session: Session,
    recipe_id: int,
    page: int = 1,
    size: int = 10,
    sort: str = "date_desc",
) -> ReviewPage:
    """Return one page of a recipe's reviews with their likers.

    `date_desc` orders by last modification, newest first; `likes_desc`
    orders by like count, then by last modification. Ties fall back to
    the review id so pages never overlap.

    Raises:
        ValidationError: If `page` < 1, `size` < 1 or `sort` is unknown.
        NotFoundError: If the recipe does not exist.
    """
    if page < 1:
        raise ValidationError("page must be >= 1", field="page")
    if size < 1:
        raise ValidationError("size must be > 0", field="size")
    if sort not in REVIEW_SORTS:
        raise ValidationError(f"sort must be one of {', '.join(REVIEW_SORTS)}", field="sort")
    BaseRepository(Recipe, session).require(recipe_id)

    total = session.scalar(
        select(func.count()).select_from(Review).where(Review.recipe_id == recipe_id)
    ) or 0

    like_counts = (
        select(ReviewLike.review_id, func.count().label("likes"))
        .group_by(ReviewLike.review_id)
        .subquery()
    )
    likes = func.coalesce(like_counts.c.likes, 0)
    order = [Review.date_modified.desc().nulls_last(), Review.review_id.desc()]
    if sort == "likes_desc":
        order.insert(0, likes.desc())

    rows = session.execute(
        select(Review, User.author_name)
        .join(User, User.author_id == Review.author_id)
        .outerjoin(like_counts, like_counts.c.review_id == Review.review_id)
        .where(Review.recipe_id == recipe_id)
        .order_by(*order)
        .limit(size)
        .offset((page - 1) * size)
    ).all()

    likers = defaultdict(list)
    review_ids = [review.review_id for review, _ in rows]
    if review_ids:
        for review_id, author_id in session.execute(
            select(ReviewLike.review_id, ReviewLike.author_id)
            .where(ReviewLike.review_id.in_(review_ids))
            .order_by(ReviewLike.author_id)
        ):
            likers[review_id].append(author_id)

    items = [
        ReviewView(
            review_id=review.review_id,
            recipe_id=review.recipe_id,
            author_id=review.author_id,
            author_name=author_name,
            rating=review.rating,
            review=review.review,
            date_submitted=review.date_submitted,
            date_modified=review.date_modified,
            likes=likers[review.review_id],
        )
        for review, author_name in rows
    ]
    return ReviewPage(items=items, page=page, size=size, total=total)
