"""User registration, profile reads, account deletion and follow toggling.

Users are never removed; deleting an account only sets `is_deleted` and
drops every follow edge touching the user. The derived follower and
following counts are refreshed after each change to `user_follows`.
"""

from datetime import date
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from core.exceptions import IntegrityError, PermissionDeniedError, ValidationError
from core.logger import get_logger
from core.repository import BaseRepository, refresh_follow_counts
from database.database import transaction
from database.models import User, UserFollow
from schemas.review_schema import AuthInfo
from schemas.user_schema import RegisterUserRequest, UserView
from services.auth import require_active_user

logger = get_logger("services.user_service")

GENDERS = {"male": "Male", "female": "Female"}


def age_on(birthday: date, today: Optional[date] = None) -> int:
    """Return the age in full years on `today`."""
    today = today or date.today()
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def register_user(session: Session, request: RegisterUserRequest) -> int:
    """Create a new active user.

    Returns:
        Id of the new user (current maximum + 1).

    Raises:
        ValidationError: Blank name, unknown gender, or a birthday that
            gives no positive age.
        IntegrityError: If the name is already taken.
    """
    name = (request.name or "").strip()
    if not name:
        raise ValidationError("name must not be blank", field="name")
    gender = GENDERS.get((request.gender or "").strip().lower())
    if gender is None:
        raise ValidationError("gender must be Male or Female", field="gender")
    age = age_on(request.birthday)
    if age <= 0:
        raise ValidationError("birthday must give a positive age", field="birthday")

    with transaction(session, operation="register_user"):
        taken = session.scalar(select(func.count()).select_from(User).where(User.author_name == name))
        if taken:
            raise IntegrityError(f"User name '{name}' is already taken", table="users")
        repo = BaseRepository(User, session)
        user = repo.add(User(
            author_id=repo.next_id(),
            author_name=name,
            gender=gender,
            age=age,
            password=request.password,
            followers=0,
            following=0,
            is_deleted=False,
        ))
        user_id = user.author_id

    logger.info("Registered user %s", user_id)
    return user_id


def get_user(session: Session, user_id: int) -> UserView:
    """Return the public profile of a user, deleted or not.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = BaseRepository(User, session).require(user_id)
    return UserView(
        author_id=user.author_id,
        author_name=user.author_name,
        gender=user.gender,
        age=user.age,
        followers=user.followers or 0,
        following=user.following or 0,
        is_deleted=bool(user.is_deleted),
    )


def delete_account(session: Session, auth: AuthInfo, user_id: int) -> bool:
    """Soft-delete the caller's own account.

    Returns:
        True if the account was deleted, False if it already was.

    Raises:
        PermissionDeniedError: If the caller is inactive or targets another account.
        NotFoundError: If the target user does not exist.
    """
    with transaction(session, operation="delete_account"):
        target = BaseRepository(User, session).require(user_id)
        if auth is None or auth.author_id != user_id:
            raise PermissionDeniedError("Users can only delete their own account", user_id=auth.author_id if auth else None)
        if target.is_deleted:
            return False
        require_active_user(session, auth)

        touching = or_(UserFollow.follower_id == user_id, UserFollow.following_id == user_id)
        edges = session.execute(select(UserFollow.follower_id, UserFollow.following_id).where(touching)).all()
        session.execute(delete(UserFollow).where(touching))
        target.is_deleted = True
        session.flush()

        touched = {user_id}
        for follower_id, following_id in edges:
            touched.update((follower_id, following_id))
        refresh_follow_counts(session, touched)

    logger.info("User %s deleted their account, %s follow edges removed", user_id, len(edges))
    return True


def follow(session: Session, auth: AuthInfo, followee_id: int) -> bool:
    """Toggle the caller's follow of `followee_id`.

    Returns:
        True when the caller now follows the user, False after an unfollow.

    Raises:
        PermissionDeniedError: Inactive caller, self-follow, or inactive/missing followee.
    """
    with transaction(session, operation="follow"):
        follower = require_active_user(session, auth)
        if follower.author_id == followee_id:
            raise PermissionDeniedError("Users cannot follow themselves", user_id=follower.author_id)
        followee = session.get(User, followee_id)
        if followee is None or followee.is_deleted:
            raise PermissionDeniedError("Followee is missing or inactive", user_id=follower.author_id)

        edge = session.get(UserFollow, (follower.author_id, followee_id))
        if edge is None:
            session.add(UserFollow(follower_id=follower.author_id, following_id=followee_id))
        else:
            session.delete(edge)
        session.flush()
        refresh_follow_counts(session, [follower.author_id, followee_id])
        now_following = edge is None

    logger.info("User %s %s user %s", auth.author_id, "followed" if now_following else "unfollowed", followee_id)
    return now_following
