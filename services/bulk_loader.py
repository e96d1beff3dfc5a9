"""Bulk loader: writes normalized rows in dependency order and bounded chunks.

Every chunk is one SAVEPOINT inside the caller's transaction and uses
insert-or-ignore semantics, so re-loading the same rows is a no-op and a
chunk the database rejects is rolled back on its own without touching the
chunks written before it. Rows whose parents were not accepted are dropped
before anything is sent to the database.
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, Iterable, List, Sequence, Set, Tuple

from sqlalchemy import delete, insert, inspect, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from core.logger import get_logger
from core.repository import refresh_follow_counts
from database.models import (
    DEPENDENCY_ORDER,
    Nutrition,
    Recipe,
    RecipeIngredient,
    Review,
    ReviewLike,
    User,
    UserFollow,
)
from schemas.rows import NormalizedDataset

logger = get_logger("services.bulk_loader")

IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "1000"))


@dataclass
class LoadReport:
    """Per-table counts of accepted and dropped rows."""

    accepted: Dict[str, int] = field(default_factory=dict)
    dropped: Dict[str, int] = field(default_factory=dict)

    def add(self, table: str, accepted: int = 0, dropped: int = 0) -> None:
        self.accepted[table] = self.accepted.get(table, 0) + accepted
        self.dropped[table] = self.dropped.get(table, 0) + dropped


class BulkLoader:
    """Persist a `NormalizedDataset` through an explicit session.

    The loader never commits; the caller owns the transaction.
    """

    def __init__(self, session: Session, batch_size: int = None):
        """Initialize the loader.

        Args:
            session: Session whose transaction every write joins.
            batch_size: Rows per chunk (defaults to `IMPORT_BATCH_SIZE`).
        """
        if batch_size is not None and batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.session = session
        self.batch_size = batch_size or IMPORT_BATCH_SIZE
        self.dialect = session.get_bind().dialect.name
        self.report = LoadReport()

    # -- clearing -----------------------------------------------------------

    def clear(self) -> None:
        """Delete every row, children before parents.

        Tables that do not exist yet are skipped.
        """
        inspector = inspect(self.session.connection())
        for model in reversed(DEPENDENCY_ORDER):
            name = model.__tablename__
            if not inspector.has_table(name):
                logger.info("Table %s does not exist, nothing to clear", name)
                continue
            result = self.session.execute(delete(model.__table__))
            logger.info("Cleared %s rows from %s", result.rowcount, name)
        self.session.expire_all()

    # -- loading ------------------------------------------------------------

    def load(self, dataset: NormalizedDataset) -> LoadReport:
        """Write every row set of `dataset` in dependency order.

        Args:
            dataset: Output of `data.normalize_records.normalize_records`.

        Returns:
            The `LoadReport` of this loader.
        """
        users = self.load_users(dataset.users)
        recipes = self.load_recipes(dataset.recipes, users)
        self.load_nutrition(dataset.nutrition, recipes)
        self.load_ingredients(dataset.ingredients, recipes)
        reviews = self.load_reviews(dataset.reviews, recipes, users)
        self.load_review_likes(dataset.review_likes, reviews, users)
        self.load_follows(dataset.follows, users)
        refresh_follow_counts(self.session)
        logger.info("Load finished: accepted=%s dropped=%s", self.report.accepted, self.report.dropped)
        return self.report

    def load_users(self, rows: Sequence) -> Set[int]:
        return self._write(User, rows, lambda r: r.author_id)

    def load_recipes(self, rows: Sequence, users: Set[int]) -> Set[int]:
        rows = self._with_parents(Recipe, rows, [(lambda r: r.author_id, users, User.author_id)])
        return self._write(Recipe, rows, lambda r: r.recipe_id)

    def load_nutrition(self, rows: Sequence, recipes: Set[int]) -> Set[int]:
        rows = self._with_parents(Nutrition, rows, [(lambda r: r.recipe_id, recipes, Recipe.recipe_id)])
        return self._write(Nutrition, rows, lambda r: r.recipe_id)

    def load_ingredients(self, rows: Sequence, recipes: Set[int]) -> Set[Tuple[int, str]]:
        rows = self._with_parents(RecipeIngredient, rows, [(lambda r: r.recipe_id, recipes, Recipe.recipe_id)])
        return self._write(RecipeIngredient, rows, lambda r: (r.recipe_id, r.ingredient_part))

    def load_reviews(self, rows: Sequence, recipes: Set[int], users: Set[int]) -> Set[int]:
        rows = self._with_parents(Review, rows, [
            (lambda r: r.recipe_id, recipes, Recipe.recipe_id),
            (lambda r: r.author_id, users, User.author_id),
        ])
        return self._write(Review, rows, lambda r: r.review_id)

    def load_review_likes(self, rows: Sequence, reviews: Set[int], users: Set[int]) -> Set[Tuple[int, int]]:
        rows = self._with_parents(ReviewLike, rows, [
            (lambda r: r.review_id, reviews, Review.review_id),
            (lambda r: r.author_id, users, User.author_id),
        ])
        return self._write(ReviewLike, rows, lambda r: (r.review_id, r.author_id))

    def load_follows(self, rows: Sequence, users: Set[int]) -> Set[Tuple[int, int]]:
        self_loops = [r for r in rows if r.follower_id == r.following_id]
        if self_loops:
            logger.warning("Dropping %s self-follow rows", len(self_loops))
            self.report.add(UserFollow.__tablename__, dropped=len(self_loops))
            rows = [r for r in rows if r.follower_id != r.following_id]
        rows = self._with_parents(UserFollow, rows, [
            (lambda r: r.follower_id, users, User.author_id),
            (lambda r: r.following_id, users, User.author_id),
        ])
        return self._write(UserFollow, rows, lambda r: (r.follower_id, r.following_id))

    # -- helpers ------------------------------------------------------------

    def _insert_ignore(self, table):
        """Build an INSERT that skips rows whose key already exists."""
        if self.dialect == "postgresql":
            return postgresql.insert(table).on_conflict_do_nothing()
        if self.dialect == "sqlite":
            return sqlite.insert(table).on_conflict_do_nothing()
        if self.dialect in ("mysql", "mariadb"):
            return insert(table).prefix_with("IGNORE")
        return insert(table)

    def _chunks(self, items: Sequence) -> Iterable[Tuple[int, Sequence]]:
        for start in range(0, len(items), self.batch_size):
            yield start, items[start:start + self.batch_size]

    def _write(self, model, rows: Sequence, key_of: Callable) -> Set:
        """Insert `rows` chunk by chunk; return the keys of accepted rows.

        Rows skipped because their key already exists count as accepted,
        they are present in the table either way.
        """
        table = model.__table__
        rows = list(rows)
        accepted = set()
        if not rows:
            self.report.add(table.name)
            return accepted

        stmt = self._insert_ignore(table)
        for start, chunk in self._chunks(rows):
            try:
                with self.session.begin_nested():
                    self.session.execute(stmt, [asdict(r) for r in chunk])
            except (IntegrityError, DataError) as exc:
                logger.warning(
                    "Rejected %s chunk %s-%s: %s",
                    table.name, start, start + len(chunk) - 1, getattr(exc, "orig", exc),
                )
                self.report.add(table.name, dropped=len(chunk))
                continue
            accepted.update(key_of(r) for r in chunk)
            self.report.add(table.name, accepted=len(chunk))
        logger.info("Loaded %s: %s rows accepted", table.name, len(accepted))
        return accepted

    def _with_parents(self, model, rows: Sequence, checks: List[Tuple[Callable, Set, object]]) -> List:
        """Drop rows whose foreign keys do not point at accepted parents.

        Each check is (key getter, accepted parent ids, parent key column).
        Parent ids missing from the accepted set are looked up in the
        database and added to it when present there.
        """
        rows = list(rows)
        for get_key, accepted, column in checks:
            wanted = {get_key(r) for r in rows} - accepted
            self._resolve_existing(column, wanted, accepted)

        kept = [r for r in rows if all(get_key(r) in accepted for get_key, accepted, _ in checks)]
        dropped = len(rows) - len(kept)
        if dropped:
            logger.warning(
                "Dropping %s %s rows that reference missing parents",
                dropped, model.__tablename__,
            )
            self.report.add(model.__tablename__, dropped=dropped)
        return kept

    def _resolve_existing(self, column, wanted: Set, accepted: Set) -> None:
        missing = list(wanted)
        for _, chunk in self._chunks(missing):
            accepted.update(self.session.scalars(select(column).where(column.in_(chunk))))
