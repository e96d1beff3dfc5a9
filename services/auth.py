"""Checks on the acting user shared by the mutation services."""

from sqlalchemy.orm import Session

from core.exceptions import PermissionDeniedError
from database.models import User
from schemas.review_schema import AuthInfo


def require_active_user(session: Session, auth: AuthInfo, check_password: bool = False) -> User:
    """Return the acting user, or raise `PermissionDeniedError`.

    The user must exist and not be soft-deleted. With `check_password`
    the supplied password must also equal the stored one.
    """
    if auth is None:
        raise PermissionDeniedError("Authentication is required")
    user = session.get(User, auth.author_id)
    if user is None:
        raise PermissionDeniedError("User does not exist", user_id=auth.author_id)
    if user.is_deleted:
        raise PermissionDeniedError("User is inactive", user_id=auth.author_id)
    if check_password and (auth.password is None or auth.password != user.password):
        raise PermissionDeniedError("Password mismatch", user_id=auth.author_id)
    return user
