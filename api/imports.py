"""Dataset import API router.

Exposes the bulk import as a single endpoint. The request replaces the
whole stored dataset in one transaction and returns the import summary.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.logger import get_logger
from database.database import get_write_session
from schemas.records import ImportRequest, ImportSummary
from services.importer import import_data

logger = get_logger("api.imports")
router = APIRouter(prefix="/api", tags=["import"])


@router.post("/import", response_model=ImportSummary)
def run_import(payload: ImportRequest, db: Session = Depends(get_write_session)):
    """Replace the stored dataset with the posted users, recipes and reviews.

    Args:
        payload: `ImportRequest` with the three raw collections.
        db: Write session injected by dependency.

    Returns:
        `ImportSummary` with per-table counts.

    Raises:
        UnavailableError: If the database cannot be reached.
    """
    logger.info(
        "Import requested: %s users, %s recipes, %s reviews",
        len(payload.users), len(payload.recipes), len(payload.reviews),
    )
    return import_data(db, reviews=payload.reviews, users=payload.users, recipes=payload.recipes)
