"""Test error handling functionality.

Verifies that custom exceptions carry the expected attributes, that the
unit of work translates connectivity failures, and that the API maps
errors to consistent JSON bodies.
"""
import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    IntegrityError,
    NotFoundError,
    PermissionDeniedError,
    UnavailableError,
    ValidationError,
)
from database.database import transaction
from database.models import User
from services.recipe_service import RecipeCache, get_recipe


def test_exception_classes_have_proper_attributes():
    exc = NotFoundError("Recipe", 123)
    assert exc.status_code == 404
    assert "Recipe" in exc.message
    assert "123" in exc.message

    exc = ValidationError("Invalid rating", field="rating")
    assert exc.status_code == 400
    assert exc.details == {"field": "rating"}

    assert PermissionDeniedError("nope", user_id=3).details == {"user_id": 3}
    assert IntegrityError("dup", table="reviews").status_code == 409

    exc = UnavailableError(operation="import")
    assert exc.status_code == 503
    assert exc.details == {"operation": "import"}


def test_transaction_translates_operational_error(session):
    with pytest.raises(UnavailableError) as exc_info:
        with transaction(session, operation="health"):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))
    assert exc_info.value.details == {"operation": "health"}


def test_transaction_rolls_back_on_error(session):
    with pytest.raises(RuntimeError):
        with transaction(session):
            session.add(User(author_id=1, author_name="ghost"))
            session.flush()
            raise RuntimeError("abort")

    assert session.get(User, 1) is None


def test_get_recipe_rejects_non_positive_id(session):
    with pytest.raises(ValidationError):
        get_recipe(session, 0)


def test_broken_cache_degrades_to_miss(imported):
    cache = RecipeCache(ttl=60)
    cache._store = None

    view = get_recipe(imported, 10, cache=cache)

    assert view.review_count == 3
    assert cache.misses == 1


def test_unavailable_database_maps_to_503(client, monkeypatch):
    import api.imports

    def unavailable(*args, **kwargs):
        raise UnavailableError(operation="import")

    monkeypatch.setattr(api.imports, "import_data", unavailable)
    res = client.post("/api/import", json={"users": [], "recipes": [], "reviews": []})

    assert res.status_code == 503
    assert res.json()["error"]["details"] == {"operation": "import"}


def test_raw_operational_error_maps_to_503(client, monkeypatch):
    import api.recipes

    def unreachable(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(api.recipes, "get_recipe", unreachable)
    res = client.get("/api/recipes/10")

    assert res.status_code == 503
    assert res.json()["error"]["message"] == "Database is unavailable"


def test_not_found_error_body(client):
    res = client.get("/api/recipes/42")
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Recipe with id '42' not found"
