"""Database helpers: engines, session factories, schema ensure and units of work.

Provides read/write session factories, an idempotent `ensure_schema` used
before every import, and the `transaction` context manager that every
import and live mutation runs inside.
"""

import os
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from .models import Base
from core.exceptions import UnavailableError
from core.logger import get_logger

logger = get_logger("database.database")

# Read/Write partitioning pattern
# In production, set WRITE_DATABASE_URL and READ_DATABASE_URL to different DB instances.
# For SQLite/demo this defaults to the same file but the interfaces are separated.
WRITE_DATABASE_URL = os.getenv("WRITE_DATABASE_URL", "sqlite:///recipes.db")
READ_DATABASE_URL = os.getenv("READ_DATABASE_URL", WRITE_DATABASE_URL)


def configure_sqlite(engine):
    """Enforce foreign keys and let SQLAlchemy own SQLite transactions.

    pysqlite opens transactions lazily and does not understand SAVEPOINT,
    so implicit handling is switched off and BEGIN is emitted explicitly.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def make_engine(url: str, **kwargs):
    """Create an engine, applying SQLite configuration when needed."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        return configure_sqlite(create_engine(url, **kwargs))
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


# Engines
write_engine = make_engine(WRITE_DATABASE_URL)
read_engine = write_engine if READ_DATABASE_URL == WRITE_DATABASE_URL else make_engine(READ_DATABASE_URL)

# Session factories
WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def ensure_schema(bind):
    """Create every table, constraint and index that does not exist yet.

    `bind` may be an engine or a connection; passing a session's connection
    runs the DDL inside that session's transaction.
    """
    Base.metadata.create_all(bind=bind)


def init_db():
    """Initialize database schema on the write engine."""
    ensure_schema(write_engine)
    logger.info("Schema ensured on %s", write_engine.url.render_as_string(hide_password=True))


@contextmanager
def transaction(session, operation: str = None):
    """Run a unit of work: commit on success, roll back on any exception.

    Connectivity failures are re-raised as `UnavailableError`; everything
    else propagates unchanged after the rollback.
    """
    try:
        yield session
        session.commit()
    except OperationalError as exc:
        session.rollback()
        logger.error("Database unavailable during %s: %s", operation or "transaction", exc)
        raise UnavailableError(operation=operation) from exc
    except Exception:
        session.rollback()
        raise


# Convenience generators for dependency injection
def get_write_session():
    """Yield a write-enabled SQLAlchemy session for the request scope.

    Use this generator as a FastAPI dependency to ensure the session is
    properly closed after the request completes.
    """
    db = WriteSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_read_session():
    """Yield a read-only SQLAlchemy session for the request scope.

    Used for read endpoints where routing reads to a replica may be desired.
    """
    db = ReadSessionLocal()
    try:
        yield db
    finally:
        db.close()
