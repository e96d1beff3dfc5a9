"""Tests for the record normalizer."""
import math

import pytest

from data.normalize_records import clamp_rating, extract_ingredients, normalize_records, parse_servings
from schemas.rows import FollowRow, IngredientRow, ReviewLikeRow


@pytest.mark.parametrize("raw, expected", [
    (-2, 0),
    (9, 5),
    (0, 0),
    (3, 3),
    (2.5, 3),
    (3.49, 3),
    (5.0, 5),
    (None, 0),
])
def test_clamp_rating(raw, expected):
    assert clamp_rating(raw) == expected


@pytest.mark.parametrize("value, expected", [
    (4, 4),
    ("4", 4),
    (" 6 ", 6),
    ("4.0", 4),
    (2.0, 2),
    (4.5, None),
    ("a handful", None),
    ("", None),
    (None, None),
    (float("nan"), None),
    (float("inf"), None),
])
def test_parse_servings(value, expected):
    assert parse_servings(value) == expected


def test_extract_ingredients_trims_and_dedups_keeping_first_spelling():
    assert extract_ingredients(["Salt", " salt ", "Pepper", "Salt"]) == ["Salt", "Pepper"]


def test_extract_ingredients_drops_empty_entries():
    assert extract_ingredients([None, "", "   ", " Basil "]) == ["Basil"]
    assert extract_ingredients(None) == []


def test_normalize_users_and_follows(raw_dataset):
    dataset = normalize_records(users=raw_dataset["users"])

    users = {u.author_id: u for u in dataset.users}
    assert set(users) == {1, 2, 3, 4}
    assert users[1].gender == "Female"
    assert users[2].gender == "Male"
    assert users[3].gender is None
    assert users[3].age is None
    assert users[4].is_deleted is True

    follows = set(dataset.follows)
    assert FollowRow(follower_id=2, following_id=1) in follows
    assert FollowRow(follower_id=3, following_id=1) in follows
    assert FollowRow(follower_id=1, following_id=2) in follows
    assert FollowRow(follower_id=2, following_id=3) in follows
    assert all(f.follower_id != f.following_id for f in dataset.follows)
    # (2, 1) comes from both Alice's and Bob's lists; the insert collapses it
    assert len(dataset.follows) == 5
    assert len(follows) == 4


def test_normalize_recipes(raw_dataset):
    dataset = normalize_records(recipes=raw_dataset["recipes"])

    assert [r.recipe_id for r in dataset.recipes] == [10, 11, 12, 13]
    assert dataset.skipped["recipes"] == 1

    servings = {r.recipe_id: r.recipe_servings for r in dataset.recipes}
    assert servings == {10: 4, 11: None, 12: 2, 13: None}

    assert {n.recipe_id for n in dataset.nutrition} == {10, 12}
    soup = next(n for n in dataset.nutrition if n.recipe_id == 10)
    assert soup.calories == 120.5
    assert soup.protein_content == 3.2
    assert soup.fat_content is None

    assert dataset.ingredients == [
        IngredientRow(10, "Salt"),
        IngredientRow(10, "Pepper"),
        IngredientRow(11, "rice"),
        IngredientRow(11, "water"),
    ]


def test_normalize_reviews_clamps_and_collects_likes(raw_dataset):
    dataset = normalize_records(reviews=raw_dataset["reviews"])

    ratings = {r.review_id: r.rating for r in dataset.reviews}
    assert ratings[105] == 0
    assert ratings[106] == 5
    assert ratings[100] == 0
    assert 108 not in ratings
    assert dataset.skipped["reviews"] == 1

    assert ReviewLikeRow(101, 1) in dataset.review_likes
    assert ReviewLikeRow(101, 999) in dataset.review_likes
    assert ReviewLikeRow(107, 1) in dataset.review_likes


def test_snake_case_keys_and_nan_cells():
    dataset = normalize_records(
        users=[{"author_id": 7, "author_name": "Eve", "age": math.nan, "follower_users": math.nan}],
        reviews=[{"review_id": 1, "recipe_id": 2, "author_id": 7, "rating": math.nan, "likes": "3, 4"}],
    )

    assert dataset.users[0].author_id == 7
    assert dataset.users[0].age is None
    assert dataset.follows == []
    assert dataset.reviews[0].rating == 0
    assert [like.author_id for like in dataset.review_likes] == [3, 4]


def test_malformed_rows_are_skipped_not_fatal():
    dataset = normalize_records(
        users=[
            {"AuthorId": 0, "AuthorName": "Zero"},
            {"AuthorId": "abc", "AuthorName": "Letters"},
            {"AuthorId": 5},
            {"AuthorId": 6, "AuthorName": "Ok"},
        ],
        recipes=[{"RecipeId": -1, "AuthorId": 6, "Name": "Negative"}],
    )

    assert [u.author_id for u in dataset.users] == [6]
    assert dataset.skipped == {"users": 3, "recipes": 1, "reviews": 0}


def test_extract_ingredients_ignores_letter_case():
    assert extract_ingredients(["SALT", "Salt", " salt", "Sea Salt"]) == ["SALT", "Sea Salt"]


@pytest.mark.parametrize("age, expected", [
    (0.5, None),
    (0.99, None),
    (1.5, 1),
    (41.9, 41),
    ("30", 30),
    (-3, None),
    (float("inf"), None),
])
def test_fractional_and_bad_ages(age, expected):
    dataset = normalize_records(users=[{"AuthorId": 5, "AuthorName": "Tiny", "Age": age}])

    assert dataset.users[0].age == expected


def test_bad_ids_in_lists_are_dropped_not_the_record():
    dataset = normalize_records(
        users=[
            {"AuthorId": 1, "AuthorName": "Alice", "FollowerUsers": [2, "abc", None, 2.5, "3"]},
            {"AuthorId": 2, "AuthorName": "Bob", "FollowingUsers": "c(1, abc)"},
        ],
        reviews=[{"ReviewId": 7, "RecipeId": 9, "AuthorId": 2, "Rating": 4, "Likes": [3, "abc", 4.0]}],
    )

    assert [u.author_id for u in dataset.users] == [1, 2]
    assert set(dataset.follows) == {FollowRow(2, 1), FollowRow(3, 1)}
    assert [r.review_id for r in dataset.reviews] == [7]
    assert dataset.review_likes == [ReviewLikeRow(7, 3), ReviewLikeRow(7, 4)]
    assert dataset.skipped == {"users": 0, "recipes": 0, "reviews": 0}
