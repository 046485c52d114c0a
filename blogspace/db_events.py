"""Engine event helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE applies on SQLite."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def attach_sqlite_listeners(engine: Engine) -> None:
    """Attach connection listeners for SQLite backends (no-op elsewhere)."""
    if engine.dialect.name != "sqlite":
        return
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
