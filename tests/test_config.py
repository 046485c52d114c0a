"""Tests for settings parsing."""

from __future__ import annotations

from blogspace.config import Settings


def test_allowed_origins_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")

    assert Settings().allowed_origins == ["https://a.example", "https://b.example"]


def test_allowed_origins_from_json_env(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", '["https://a.example"]')

    assert Settings().cors_origins == ["https://a.example"]


def test_async_url_derived_from_sqlite_url():
    settings = Settings(DATABASE_URL="sqlite:///./data/app.db")

    assert settings.resolved_async_database_url == "sqlite+aiosqlite:///./data/app.db"


def test_explicit_async_url_wins():
    settings = Settings(
        DATABASE_URL="postgresql://db/blog",
        ASYNC_DATABASE_URL="postgresql+asyncpg://db/blog",
    )

    assert settings.resolved_async_database_url == "postgresql+asyncpg://db/blog"
    assert not settings.is_production
