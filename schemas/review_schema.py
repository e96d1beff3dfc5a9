"""Schemas for review, like and account mutation requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class AuthInfo(BaseModel):
    """Credentials of the acting user; the password is an opaque string."""

    author_id: int = Field(..., gt=0, examples=[1], description="Id of the acting user")
    password: Optional[str] = Field(None, examples=["secret"], description="Password, compared for equality")


class AuthRequest(BaseModel):
    """Body of mutations that only need the acting user."""

    auth: AuthInfo


class ReviewCreateRequest(BaseModel):
    """Payload for adding a review to a recipe."""

    auth: AuthInfo
    rating: int = Field(..., examples=[5], description="Rating from 1 (poor) to 5 (excellent)")
    review: Optional[str] = Field(None, examples=["Lovely and quick"], description="Review text")


class ReviewUpdateRequest(BaseModel):
    """Payload for editing an existing review."""

    auth: AuthInfo
    rating: int = Field(..., examples=[4], description="New rating from 1 to 5")
    review: Optional[str] = Field(None, description="New review text")


class ReviewCreatedResponse(BaseModel):
    """Id of a newly stored review."""

    review_id: int


class LikeCountResponse(BaseModel):
    """Number of likes a review has after a like/unlike."""

    review_id: int
    likes: int


class FollowResponse(BaseModel):
    """Follow state after a follow toggle."""

    followee_id: int
    following: bool


class DeleteAccountResponse(BaseModel):
    """Outcome of an account deletion."""

    user_id: int
    deleted: bool


class ReviewView(BaseModel):
    """One review of a recipe together with the ids of the users who liked it."""

    review_id: int
    recipe_id: int
    author_id: int
    author_name: Optional[str] = None
    rating: int
    review: Optional[str] = None
    date_submitted: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    likes: List[int] = Field(default_factory=list)


class ReviewPage(BaseModel):
    """A page of a recipe's reviews."""

    items: List[ReviewView]
    page: int
    size: int
    total: int
