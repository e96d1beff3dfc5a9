"""SQLAlchemy ORM models for the recipe review service.

This module defines the normalized schema written by the bulk importer and
the live review endpoints: User, Recipe, Nutrition, RecipeIngredient,
Review, ReviewLike and UserFollow. Models are plain declarative classes and
intentionally keep behavior-free; the rating aggregate on `Recipe` is
maintained by `services.aggregate_maintainer`.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    """ORM model representing a recipe author or reviewer.

    `followers` and `following` are derived from `user_follows` and are
    refreshed by the loader and the user service, never written directly.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("gender IN ('Male', 'Female')", name="ck_users_gender"),
        CheckConstraint("age > 0", name="ck_users_age_positive"),
        CheckConstraint("followers >= 0", name="ck_users_followers"),
        CheckConstraint("following >= 0", name="ck_users_following"),
    )

    author_id = Column(BigInteger, primary_key=True, autoincrement=False)
    author_name = Column(String(255), nullable=False)
    gender = Column(String(10), nullable=True)
    age = Column(Integer, nullable=True)
    followers = Column(Integer, nullable=False, default=0)
    following = Column(Integer, nullable=False, default=0)
    password = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)


class Recipe(Base):
    """ORM model representing a published recipe.

    `aggregated_rating` and `review_count` are a function of the recipe's
    reviews with a positive rating.
    """

    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint(
            "aggregated_rating >= 0 AND aggregated_rating <= 5",
            name="ck_recipes_aggregated_rating",
        ),
        CheckConstraint("review_count >= 0", name="ck_recipes_review_count"),
    )

    recipe_id = Column(BigInteger, primary_key=True, autoincrement=False)
    author_id = Column(BigInteger, ForeignKey("users.author_id"), nullable=False, index=True)
    name = Column(String(500), nullable=False)
    cook_time = Column(String(50), nullable=True)
    prep_time = Column(String(50), nullable=True)
    total_time = Column(String(50), nullable=True)
    date_published = Column(DateTime, nullable=True)
    description = Column(Text, nullable=True)
    recipe_category = Column(String(255), nullable=True, index=True)
    recipe_servings = Column(Integer, nullable=True)
    recipe_yield = Column(String(100), nullable=True)
    aggregated_rating = Column(Numeric(3, 2), nullable=True, default=0)
    review_count = Column(Integer, nullable=False, default=0)


class Nutrition(Base):
    """Nutrition facts for a recipe; only present when calories were positive."""

    __tablename__ = "nutrition"

    recipe_id = Column(BigInteger, ForeignKey("recipes.recipe_id"), primary_key=True, autoincrement=False)
    calories = Column(Float, nullable=True)
    fat_content = Column(Float, nullable=True)
    saturated_fat_content = Column(Float, nullable=True)
    cholesterol_content = Column(Float, nullable=True)
    sodium_content = Column(Float, nullable=True)
    carbohydrate_content = Column(Float, nullable=True)
    fiber_content = Column(Float, nullable=True)
    sugar_content = Column(Float, nullable=True)
    protein_content = Column(Float, nullable=True)


class RecipeIngredient(Base):
    """One ingredient string of a recipe."""

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(BigInteger, ForeignKey("recipes.recipe_id"), primary_key=True)
    ingredient_part = Column(String(500), primary_key=True)


class Review(Base):
    """ORM model for a user's review of a recipe.

    A rating of 0 is a valid row (likes may hang off it) but does not count
    towards the recipe aggregate.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_reviews_rating"),
        Index("ix_reviews_recipe_rating", "recipe_id", "rating"),
    )

    review_id = Column(BigInteger, primary_key=True, autoincrement=False)
    recipe_id = Column(BigInteger, ForeignKey("recipes.recipe_id"), nullable=False)
    author_id = Column(BigInteger, ForeignKey("users.author_id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False, default=0)
    review = Column(Text, nullable=True)
    date_submitted = Column(DateTime, nullable=True)
    date_modified = Column(DateTime, nullable=True)


class ReviewLike(Base):
    """A user liking a review."""

    __tablename__ = "review_likes"

    review_id = Column(BigInteger, ForeignKey("reviews.review_id"), primary_key=True)
    author_id = Column(BigInteger, ForeignKey("users.author_id"), primary_key=True, index=True)


class UserFollow(Base):
    """Directed follow edge between two users."""

    __tablename__ = "user_follows"
    __table_args__ = (
        CheckConstraint("follower_id != following_id", name="ck_user_follows_no_self"),
    )

    follower_id = Column(BigInteger, ForeignKey("users.author_id"), primary_key=True)
    following_id = Column(BigInteger, ForeignKey("users.author_id"), primary_key=True, index=True)


# Parents before children; reversed when clearing.
DEPENDENCY_ORDER = (
    User,
    Recipe,
    Nutrition,
    RecipeIngredient,
    Review,
    ReviewLike,
    UserFollow,
)
