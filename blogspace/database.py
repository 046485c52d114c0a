"""Synchronous SQLAlchemy engine used for schema creation and migrations."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase

from blogspace.config import settings
from blogspace.db_events import attach_sqlite_listeners


class Base(DeclarativeBase):
    """Declarative base class for ORM models."""


_database_url = settings.database_url
engine_kwargs: dict[str, object] = {"echo": settings.db_echo, "pool_pre_ping": True}
if _database_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine: Engine = create_engine(_database_url, **engine_kwargs)
attach_sqlite_listeners(engine)


def ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or not parsed.database:
        return
    if parsed.database == ":memory:":
        return
    Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


def init_database() -> None:
    """Create all tables that do not exist yet."""
    ensure_sqlite_directory(_database_url)
    Base.metadata.create_all(bind=engine)
