"""Database package: ORM models, session helpers and schema management."""

from .database import (
    write_engine,
    read_engine,
    WriteSessionLocal,
    ReadSessionLocal,
    configure_sqlite,
    ensure_schema,
    init_db,
    transaction,
    get_write_session,
    get_read_session,
)
from . import models

__all__ = [
    "write_engine",
    "read_engine",
    "WriteSessionLocal",
    "ReadSessionLocal",
    "configure_sqlite",
    "ensure_schema",
    "init_db",
    "transaction",
    "get_write_session",
    "get_read_session",
    "models",
]
