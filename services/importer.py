"""Import entry point: replace the stored dataset with a new one.

The whole import runs in one unit of work. First the schema is ensured,
then existing rows are cleared. Next the raw records are normalized and
loaded. Last the aggregate of every recipe is recomputed. A failure at any
step rolls the session back, so readers see either the old dataset or the
new one.
"""

from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from core.logger import get_logger
from data.normalize_records import normalize_records
from database.database import ensure_schema, transaction
from schemas.records import ImportSummary
from services.aggregate_maintainer import recompute_all
from services.bulk_loader import BulkLoader
from services.recipe_service import recipe_cache

logger = get_logger("services.importer")


def import_data(
    session: Session,
    reviews: Iterable[Any],
    users: Iterable[Any],
    recipes: Iterable[Any],
    batch_size: Optional[int] = None,
) -> ImportSummary:
    """Ensure schema, clear, normalize, load and sweep aggregates.

    Args:
        session: Write session; committed on success, rolled back on failure.
        reviews: Raw review entries.
        users: Raw user entries.
        recipes: Raw recipe entries.
        batch_size: Loader chunk size (defaults to `IMPORT_BATCH_SIZE`).

    Returns:
        `ImportSummary` with normalization and load counts.

    Raises:
        UnavailableError: If the database cannot be reached.
    """
    logger.info("Import started")
    with transaction(session, operation="import"):
        ensure_schema(session.connection())
        loader = BulkLoader(session, batch_size=batch_size)
        loader.clear()

        dataset = normalize_records(users=users, recipes=recipes, reviews=reviews)
        report = loader.load(dataset)
        rated = recompute_all(session)

    recipe_cache.clear()
    summary = ImportSummary(
        normalized=dataset.counts(),
        skipped=dict(dataset.skipped),
        accepted=report.accepted,
        dropped=report.dropped,
        rated_recipes=rated,
    )
    logger.info("Import finished: %s", summary.model_dump())
    return summary
