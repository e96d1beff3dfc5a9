"""User API router.

Provides registration, profile reads, account deletion (soft delete) and
the follow toggle.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.logger import get_logger
from database.database import get_read_session, get_write_session
from schemas.review_schema import AuthRequest, DeleteAccountResponse, FollowResponse
from schemas.user_schema import RegisterUserRequest, UserCreatedResponse, UserView
from services import user_service

logger = get_logger("api.users")
router = APIRouter(prefix="/api", tags=["users"])


@router.post("/users", response_model=UserCreatedResponse, status_code=201)
def register(payload: RegisterUserRequest, db: Session = Depends(get_write_session)):
    """Register a new user.

    Raises:
        ValidationError: Blank name, unknown gender or a birthday giving no positive age.
        IntegrityError: If the name is already taken.
    """
    user_id = user_service.register_user(db, payload)
    return UserCreatedResponse(user_id=user_id)


@router.get("/users/{user_id}", response_model=UserView)
def read_user(user_id: int, db: Session = Depends(get_read_session)):
    """Return a user's public profile."""
    return user_service.get_user(db, user_id)


@router.delete("/users/{user_id}", response_model=DeleteAccountResponse)
def delete_account(user_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Soft-delete the caller's account and drop its follow edges.

    Returns:
        `DeleteAccountResponse`; `deleted` is False when the account was already deleted.
    """
    deleted = user_service.delete_account(db, payload.auth, user_id)
    return DeleteAccountResponse(user_id=user_id, deleted=deleted)


@router.post("/users/{followee_id}/follow", response_model=FollowResponse)
def toggle_follow(followee_id: int, payload: AuthRequest, db: Session = Depends(get_write_session)):
    """Follow the user, or unfollow when already following."""
    following = user_service.follow(db, payload.auth, followee_id)
    return FollowResponse(followee_id=followee_id, following=following)
