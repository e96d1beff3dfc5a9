"""Command line import of a users/recipes/reviews dataset.

This module provides:
- read_records(path): reads a CSV or JSON dataset file into plain dicts
- run_import(users_path, recipes_path, reviews_path, session): full import

Files are read with pandas; the file extension picks the reader. List
columns such as `RecipeIngredientParts` or `Likes` may be stored as JSON
arrays, R-style `c(...)` vectors or comma-separated strings.
"""
from __future__ import annotations

import json
import os
from typing import Dict, List, Optional

import pandas as pd

from core.logger import get_logger, set_level
from database.database import WriteSessionLocal
from schemas.records import ImportSummary
from services.importer import import_data

logger = get_logger("data.import_dataset")


def read_records(path: Optional[str]) -> List[Dict]:
    """Read one dataset file into a list of JSON-compatible dicts.

    Args:
        path: CSV, JSON or JSON-lines file; None yields no records.

    Returns:
        One dict per row, NaN cells turned into None.
    """
    if not path:
        return []
    ext = os.path.splitext(path)[1].lower()
    logger.info("Reading %s", path)
    if ext == ".csv":
        df = pd.read_csv(path, encoding="utf-8", engine="python")
    elif ext == ".json":
        df = pd.read_json(path)
    elif ext in (".jsonl", ".ndjson"):
        df = pd.read_json(path, lines=True)
    else:
        raise ValueError(f"Unsupported dataset file type: {path}")

    records = json.loads(df.to_json(orient="records", date_format="iso"))
    logger.info("Read %s rows from %s", len(records), path)
    return records


def run_import(
    users_path: Optional[str],
    recipes_path: Optional[str],
    reviews_path: Optional[str],
    session=None,
    batch_size: Optional[int] = None,
) -> ImportSummary:
    """Read the three dataset files and import them in one transaction.

    If `session` is not supplied, a `WriteSessionLocal` session is used.
    """
    users = read_records(users_path)
    recipes = read_records(recipes_path)
    reviews = read_records(reviews_path)

    close_session = False
    if session is None:
        session = WriteSessionLocal()
        close_session = True
    try:
        return import_data(session, reviews=reviews, users=users, recipes=recipes, batch_size=batch_size)
    finally:
        if close_session:
            session.close()


if __name__ == "__main__":
    import argparse

    p = argparse.ArgumentParser("Import a users/recipes/reviews dataset into the DB")
    p.add_argument("--users", help="Users file (CSV or JSON)")
    p.add_argument("--recipes", help="Recipes file (CSV or JSON)")
    p.add_argument("--reviews", help="Reviews file (CSV or JSON)")
    p.add_argument("--batch-size", type=int, default=None, help="Rows per insert chunk")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    args = p.parse_args()
    if args.log_level:
        set_level(args.log_level)
    summary = run_import(args.users, args.recipes, args.reviews, batch_size=args.batch_size)
    print(json.dumps(summary.model_dump(), indent=2))
