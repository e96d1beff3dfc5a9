"""Application entry point for the Recipe Review API.

Defines the FastAPI app, middleware and exception handlers and includes the
API routers from the `api` package. The `lifespan` handler ensures the
database schema on startup.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.imports import router as imports_router
from api.recipes import router as recipes_router
from api.reviews import router as reviews_router
from api.users import router as users_router
from core.error_handlers import register_exception_handlers
from core.exceptions import UnavailableError
from core.logger import get_logger
from database import get_read_session, init_db
from services.recipe_service import recipe_cache

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fastapi lifespan context: ensure the schema before serving requests."""
    init_db()
    yield


app = FastAPI(title="Recipe Review API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.get("/health")
def health(db: Session = Depends(get_read_session)):
    """Return basic health status, database connectivity and cache stats.

    Raises:
        UnavailableError: If the database cannot be reached.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.exception("Health check failed")
        raise UnavailableError("Database health check failed", operation="health") from exc
    return {"status": "healthy", "database": "connected", "cache": recipe_cache.stats()}


app.include_router(imports_router)
app.include_router(recipes_router)
app.include_router(reviews_router)
app.include_router(users_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
