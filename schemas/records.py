"""Schemas for the raw, denormalized records accepted by the importer.

Records arrive from JSON payloads or from pandas-read dataset files, so
field names are accepted both in snake_case and in the dataset's PascalCase
(`AuthorId`, `RecipeIngredientParts`, ...). Values are coerced leniently:
NaN becomes absent, list fields accept lists, JSON arrays, R-style
`c("a", "b")` vectors or comma-separated strings.
"""

import json
import math
from datetime import datetime
from typing import Any, List, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


def _split_list(value: Any) -> List[Any]:
    """Turn a list-ish cell into a Python list."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return []
        if raw.startswith("c(") and raw.endswith(")"):
            raw = "[" + raw[2:-1] + "]"
        try:
            parsed = json.loads(raw)
            return parsed if isinstance(parsed, list) else [parsed]
        except ValueError:
            return [part.strip().strip("\"'") for part in raw.strip("[]").split(",")]
    return [value]


def _id_list(value: Any) -> List[int]:
    """Turn a list-ish cell of ids into ints, dropping entries that are not whole numbers."""
    ids = []
    for item in _split_list(value):
        if isinstance(item, int) and not isinstance(item, bool):
            ids.append(item)
            continue
        number = _lenient_float(item)
        if number is None or not math.isfinite(number) or number != int(number):
            continue
        ids.append(int(number))
    return ids


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp cell; anything unparseable becomes absent."""
    if value is None or isinstance(value, datetime):
        return value
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def _lenient_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


class RawRecord(BaseModel):
    """Common configuration for raw import records."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _nan_to_none(cls, value):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value


class UserRecord(RawRecord):
    """A user entry with embedded follow lists."""

    author_id: Optional[int] = None
    author_name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[float] = None
    password: Optional[str] = None
    is_deleted: Optional[bool] = False
    follower_users: List[int] = Field(default_factory=list, description="Users following this user")
    following_users: List[int] = Field(default_factory=list, description="Users this user follows")

    @field_validator("follower_users", "following_users", mode="before")
    @classmethod
    def _lists(cls, value):
        return _id_list(value)

    @field_validator("age", mode="before")
    @classmethod
    def _age(cls, value):
        return _lenient_float(value)


class RecipeRecord(RawRecord):
    """A recipe entry with embedded ingredients and nutrition facts."""

    recipe_id: Optional[int] = None
    author_id: Optional[int] = None
    name: Optional[str] = None
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    total_time: Optional[str] = None
    date_published: Optional[datetime] = None
    description: Optional[str] = None
    recipe_category: Optional[str] = None
    recipe_ingredient_parts: List[Optional[str]] = Field(default_factory=list)
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    recipe_servings: Union[int, float, str, None] = None
    recipe_yield: Optional[str] = None

    @field_validator("recipe_ingredient_parts", mode="before")
    @classmethod
    def _ingredients(cls, value):
        return [None if part is None else str(part) for part in _split_list(value)]

    @field_validator("date_published", mode="before")
    @classmethod
    def _published(cls, value):
        return _parse_timestamp(value)

    @field_validator(
        "calories",
        "fat_content",
        "saturated_fat_content",
        "cholesterol_content",
        "sodium_content",
        "carbohydrate_content",
        "fiber_content",
        "sugar_content",
        "protein_content",
        mode="before",
    )
    @classmethod
    def _nutrients(cls, value):
        return _lenient_float(value)


class ReviewRecord(RawRecord):
    """A review entry with the ids of the users who liked it."""

    review_id: Optional[int] = None
    recipe_id: Optional[int] = None
    author_id: Optional[int] = None
    rating: Optional[float] = None
    review: Optional[str] = None
    date_submitted: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    likes: List[int] = Field(default_factory=list)

    @field_validator("likes", mode="before")
    @classmethod
    def _likes(cls, value):
        return _id_list(value)

    @field_validator("date_submitted", "date_modified", mode="before")
    @classmethod
    def _dates(cls, value):
        return _parse_timestamp(value)


class ImportRequest(BaseModel):
    """Payload of `POST /api/import`: the three raw collections."""

    users: List[dict] = Field(default_factory=list)
    recipes: List[dict] = Field(default_factory=list)
    reviews: List[dict] = Field(default_factory=list)


class ImportSummary(BaseModel):
    """Result of a completed import."""

    normalized: dict
    skipped: dict
    accepted: dict
    dropped: dict
    rated_recipes: int
