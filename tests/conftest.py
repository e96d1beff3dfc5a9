"""Shared test fixtures: an in-memory SQLite database per test.

The engine is configured exactly like the production SQLite engines
(foreign keys on, SQLAlchemy-driven transactions and savepoints) and shared
across sessions through `StaticPool`. Only one session may hold an open
transaction at a time, so tests commit or close before the next one starts.
"""
import copy

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.database import configure_sqlite, ensure_schema, get_read_session, get_write_session
from services.recipe_service import recipe_cache

USERS = [
    {"AuthorId": 1, "AuthorName": "Alice", "Gender": "female", "Age": 30, "Password": "pw1",
     "FollowerUsers": [2, 3], "FollowingUsers": [2]},
    {"AuthorId": 2, "AuthorName": "Bob", "Gender": "Male", "Age": 41, "Password": "pw2",
     "FollowingUsers": "c(1, 3, 2)"},
    {"AuthorId": 3, "AuthorName": "Carol", "Gender": "unknown", "Age": -1, "Password": "pw3"},
    {"AuthorId": 4, "AuthorName": "Dan", "Password": "pw4", "IsDeleted": True},
]

RECIPES = [
    {"RecipeId": 10, "AuthorId": 1, "Name": "Tomato Soup", "RecipeCategory": "Soup",
     "RecipeIngredientParts": ["Salt", " salt ", "Pepper", "Salt"],
     "Calories": 120.5, "ProteinContent": 3.2, "RecipeServings": "4"},
    {"RecipeId": 11, "AuthorId": 2, "Name": "Plain Rice",
     "RecipeIngredientParts": 'c("rice", "water")', "Calories": 0, "RecipeServings": "a handful"},
    {"RecipeId": 12, "AuthorId": 1, "Name": "Toast", "Calories": 80, "RecipeServings": 2.0},
    # author does not exist
    {"RecipeId": 13, "AuthorId": 99, "Name": "Orphan Stew"},
    # blank name
    {"RecipeId": 14, "AuthorId": 1, "Name": "   "},
]

REVIEWS = [
    {"ReviewId": 100, "RecipeId": 10, "AuthorId": 2, "Rating": 0, "Review": "no score"},
    {"ReviewId": 101, "RecipeId": 10, "AuthorId": 3, "Rating": 3, "Review": "ok", "Likes": [1, 4, 999]},
    {"ReviewId": 102, "RecipeId": 10, "AuthorId": 2, "Rating": 5, "Review": "great"},
    {"ReviewId": 103, "RecipeId": 10, "AuthorId": 3, "Rating": 0},
    {"ReviewId": 104, "RecipeId": 10, "AuthorId": 2, "Rating": 4},
    {"ReviewId": 105, "RecipeId": 12, "AuthorId": 2, "Rating": -2},
    {"ReviewId": 106, "RecipeId": 12, "AuthorId": 3, "Rating": 9},
    # recipe 13 is never stored
    {"ReviewId": 107, "RecipeId": 13, "AuthorId": 2, "Rating": 4, "Likes": [1]},
    # missing recipe id
    {"ReviewId": 108, "AuthorId": 2, "Rating": 4},
]


def make_engine():
    return configure_sqlite(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))


@pytest.fixture
def engine():
    engine = make_engine()
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def raw_dataset():
    """Fresh copies of the sample users, recipes and reviews."""
    return {
        "users": copy.deepcopy(USERS),
        "recipes": copy.deepcopy(RECIPES),
        "reviews": copy.deepcopy(REVIEWS),
    }


@pytest.fixture
def imported(session, raw_dataset):
    """Session over a database holding the imported sample dataset."""
    from services.importer import import_data

    import_data(session, **raw_dataset)
    return session


@pytest.fixture(autouse=True)
def clear_recipe_cache():
    recipe_cache.clear()
    yield
    recipe_cache.clear()


@pytest.fixture
def client(session_factory):
    from main import app

    def override_session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_write_session] = override_session
    app.dependency_overrides[get_read_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
