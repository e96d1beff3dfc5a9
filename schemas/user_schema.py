"""Schemas for user registration and profile reads."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class RegisterUserRequest(BaseModel):
    """Payload for registering a new user; the age is derived from the birthday."""

    name: str = Field(..., examples=["Alice"])
    gender: str = Field(..., examples=["Female"], description="Male or Female, any letter case")
    birthday: date = Field(..., examples=["1990-04-12"])
    password: Optional[str] = Field(None, examples=["secret"])


class UserCreatedResponse(BaseModel):
    """Id of a newly registered user."""

    user_id: int


class UserView(BaseModel):
    """Public profile of a user; the password is never returned."""

    author_id: int
    author_name: str
    gender: Optional[str] = None
    age: Optional[int] = None
    followers: int = 0
    following: int = 0
    is_deleted: bool = False
