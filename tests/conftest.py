"""Test fixtures for the app, the database and signed-in clients."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

TESTS_ROOT = Path(__file__).parent

# Set DATABASE_URL *before* importing blogspace modules so the engines point at
# a throwaway file instead of the default data directory.
os.environ.setdefault("DATABASE_URL", "sqlite:///test_blogspace.db")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from blogspace.config import settings  # noqa: E402
from blogspace.database import Base, engine, init_database  # noqa: E402
from blogspace.db_events import attach_sqlite_listeners  # noqa: E402
from blogspace.main import app  # noqa: E402
from blogspace.models import Blog, Profile, User  # noqa: E402
from blogspace.security import CSRF_COOKIE_NAME  # noqa: E402
from blogspace.security.rate_limit import limiter  # noqa: E402

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False

TEST_DB_PATH = Path("test_blogspace.db")
TEST_PASSWORD = "correct-horse-battery"
SyncSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="session")
def database():
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()
    init_database()
    yield engine
    engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture(autouse=True)
def clean_tables(database):
    yield
    # Ensure database state is isolated between tests
    with database.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="session")
def client(database):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anon_client(client):
    client.cookies.clear()
    return client


@pytest.fixture
def db_session(database) -> Session:
    session = SyncSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest_asyncio.fixture
async def session_factory(database):
    """Session factory on a fresh engine bound to the running test loop."""
    async_engine = create_async_engine(
        settings.resolved_async_database_url, poolclass=NullPool
    )
    attach_sqlite_listeners(async_engine.sync_engine)
    yield async_sessionmaker(bind=async_engine, expire_on_commit=False)
    await async_engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as async_session:
        yield async_session


def _make_user(
    db: Session, email: str, username: str | None = "", bio: str | None = None
) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=False,
    )
    db.add(user)
    db.flush()
    if username is not None:
        db.add(
            Profile(user_id=user.id, username=username or email.split("@")[0], bio=bio)
        )
    db.commit()
    return user


def _make_blog(
    db: Session,
    author: User | uuid.UUID,
    title: str = "Hello world",
    content: str = "Body text",
    excerpt: str | None = None,
    published: bool = True,
    **extra,
) -> Blog:
    blog = Blog(
        user_id=getattr(author, "id", author),
        title=title,
        content=content,
        excerpt=excerpt if excerpt is not None else content[:150],
        published=published,
        **extra,
    )
    db.add(blog)
    db.commit()
    db.refresh(blog)
    return blog


@pytest.fixture
def make_user(db_session):
    """Insert an identity directly; ``username=None`` skips the profile row."""

    def factory(email: str, username: str | None = "", bio: str | None = None):
        return _make_user(db_session, email, username, bio)

    return factory


@pytest.fixture
def make_blog(db_session):
    def factory(author, **fields):
        return _make_blog(db_session, author, **fields)

    return factory


def _csrf_token(client: TestClient) -> str:
    if CSRF_COOKIE_NAME not in client.cookies:
        client.get("/auth")
    return client.cookies[CSRF_COOKIE_NAME]


@pytest.fixture
def csrf_token(client):
    """Prime the CSRF cookie via a page render and return its value."""
    return lambda: _csrf_token(client)


@pytest.fixture
def sign_up(client):
    """Register through the HTML form; the client keeps the auth cookie."""

    def register(email: str, username: str = "") -> uuid.UUID:
        client.cookies.clear()
        response = client.post(
            "/auth/signup",
            data={
                "email": email,
                "password": TEST_PASSWORD,
                "username": username,
                "csrf_token": _csrf_token(client),
            },
            follow_redirects=False,
        )
        assert response.status_code == 303, response.text
        me = client.get("/users/me")
        assert me.status_code == 200, me.text
        return uuid.UUID(me.json()["id"])

    yield register
    client.cookies.clear()


@pytest.fixture
def author_id(sign_up):
    """Register an author and leave ``client`` signed in as them."""
    return sign_up("author@example.com", "Author")


@pytest.fixture
def password():
    return TEST_PASSWORD
