"""Tests for reading dataset files and importing them from the command line helper."""
import json
from decimal import Decimal

import pytest

from data.import_dataset import read_records, run_import
from database.models import Recipe, RecipeIngredient, ReviewLike, User

USERS_CSV = """AuthorId,AuthorName,Gender,Age,Password,FollowerUsers,FollowingUsers
1,Alice,Female,30,pw1,"c(2)",
2,Bob,male,,pw2,,"c(1)"
"""

RECIPES_CSV = """RecipeId,AuthorId,Name,RecipeIngredientParts,Calories,RecipeServings,DatePublished
10,1,Tomato Soup,"c(""Salt"", "" salt "", ""Pepper"")",120.5,4,2020-05-01T10:00:00Z
11,2,Rice,,,a few,
"""

REVIEWS_CSV = """ReviewId,RecipeId,AuthorId,Rating,Review,Likes
100,10,2,4,good,"c(1)"
101,10,1,9,self review,
"""


@pytest.fixture
def dataset_files(tmp_path):
    paths = {}
    for name, content in (("users", USERS_CSV), ("recipes", RECIPES_CSV), ("reviews", REVIEWS_CSV)):
        path = tmp_path / f"{name}.csv"
        path.write_text(content, encoding="utf-8")
        paths[name] = str(path)
    return paths


def test_read_records_turns_missing_cells_into_none(dataset_files):
    users = read_records(dataset_files["users"])

    assert len(users) == 2
    assert users[1]["Age"] is None
    assert users[0]["FollowingUsers"] is None


def test_read_records_json(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps([{"AuthorId": 1, "AuthorName": "Alice", "FollowingUsers": [2]}]))

    records = read_records(str(path))

    assert records == [{"AuthorId": 1, "AuthorName": "Alice", "FollowingUsers": [2]}]


def test_read_records_rejects_unknown_extension(tmp_path):
    path = tmp_path / "users.xml"
    path.write_text("<users/>")
    with pytest.raises(ValueError):
        read_records(str(path))
    assert read_records(None) == []


def test_run_import_from_csv(session, dataset_files):
    summary = run_import(
        dataset_files["users"], dataset_files["recipes"], dataset_files["reviews"],
        session=session, batch_size=1,
    )

    assert summary.accepted["users"] == 2
    assert session.get(User, 2).gender == "Male"
    assert session.get(User, 2).age is None

    soup = session.get(Recipe, 10)
    assert soup.recipe_servings == 4
    assert soup.date_published.year == 2020
    assert (soup.aggregated_rating, soup.review_count) == (Decimal("4.50"), 2)
    assert session.get(Recipe, 11).recipe_servings is None

    parts = session.query(RecipeIngredient.ingredient_part).filter_by(recipe_id=10).all()
    assert sorted(p for (p,) in parts) == ["Pepper", "Salt"]
    assert session.get(ReviewLike, (100, 1)) is not None
