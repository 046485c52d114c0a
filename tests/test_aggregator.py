"""Tests for list/detail aggregation."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from blogspace.constants import UNKNOWN_AUTHOR
from blogspace.services import aggregator, blog_store
from blogspace.services.errors import NotFoundError


@pytest.fixture
def readers(make_user):
    return [make_user(f"reader{i}@example.com", f"reader{i}") for i in range(5)]


@pytest.mark.asyncio
async def test_feed_cards_carry_counts_in_order(session, make_user, make_blog, readers):
    authors = [make_user(f"{name}@example.com", name) for name in ("ann", "ben", "cat")]
    now = datetime.now(UTC)
    a = make_blog(authors[0], title="A", created_at=now)
    b = make_blog(authors[1], title="B", created_at=now - timedelta(hours=1))
    c = make_blog(authors[2], title="C", created_at=now - timedelta(hours=2))

    for reader in readers[:2]:
        await blog_store.toggle_like(session, a.id, reader.id)
    for reader in readers:
        await blog_store.toggle_like(session, c.id, reader.id)
    await blog_store.post_comment(session, a.id, readers[0].id, "one")
    for text in ("x", "y", "z"):
        await blog_store.post_comment(session, c.id, readers[1].id, text)

    cards = await aggregator.load_feed(session)

    assert [card.title for card in cards] == ["A", "B", "C"]
    assert [card.like_count for card in cards] == [2, 0, 5]
    assert [card.comment_count for card in cards] == [1, 0, 3]
    assert [card.author_name for card in cards] == ["ann", "ben", "cat"]
    assert cards[1].id == b.id


@pytest.mark.asyncio
async def test_missing_profile_falls_back_to_unknown(session, make_user, make_blog):
    ghost = make_user("ghost@example.com", username=None)
    make_blog(ghost, title="Orphan")

    cards = await aggregator.load_feed(session)

    assert cards[0].author_name == UNKNOWN_AUTHOR


@pytest.mark.asyncio
async def test_author_lookup_failure_is_not_fatal(session, make_user, make_blog, monkeypatch):
    author = make_user("writer@example.com", "writer")
    blog = make_blog(author)
    await blog_store.toggle_like(session, blog.id, author.id)
    original_execute = session.execute
    in_savepoint = []

    async def failing_profile_lookup(stmt, *args, **kwargs):
        if "profiles" in str(stmt):
            in_savepoint.append(session.in_nested_transaction())
            raise OperationalError(str(stmt), {}, Exception("profiles offline"))
        return await original_execute(stmt, *args, **kwargs)

    monkeypatch.setattr(session, "execute", failing_profile_lookup)

    cards = await aggregator.aggregate_blogs(session, [blog])

    assert in_savepoint == [True]
    assert cards[0].author_name == UNKNOWN_AUTHOR
    assert cards[0].like_count == 1
    assert not session.in_nested_transaction()


@pytest.mark.asyncio
async def test_aggregate_empty_input_issues_no_queries(session, monkeypatch):
    execute = AsyncMock()
    monkeypatch.setattr(session, "execute", execute)

    assert await aggregator.aggregate_blogs(session, []) == []
    execute.assert_not_called()


@pytest.mark.asyncio
async def test_blog_detail_includes_viewer_like_and_named_comments(
    session, make_user, make_blog
):
    author = make_user("writer@example.com", "writer")
    reader = make_user("reader@example.com", "reader")
    silent = make_user("silent@example.com", username=None)
    blog = make_blog(author)
    await blog_store.toggle_like(session, blog.id, reader.id)
    await blog_store.post_comment(session, blog.id, reader.id, "Loved it")
    await blog_store.post_comment(session, blog.id, silent.id, "Hmm")

    detail = await aggregator.load_blog_detail(session, blog.id, reader.id)

    assert detail.is_liked is True
    assert detail.blog.like_count == 1
    assert detail.blog.comment_count == 2
    assert detail.blog.author_name == "writer"
    names = {comment.content: comment.author_name for comment in detail.comments}
    assert names == {"Loved it": "reader", "Hmm": UNKNOWN_AUTHOR}


@pytest.mark.asyncio
async def test_blog_detail_anonymous_viewer(session, make_user, make_blog):
    author = make_user("writer@example.com", "writer")
    blog = make_blog(author)
    await blog_store.toggle_like(session, blog.id, author.id)

    detail = await aggregator.load_blog_detail(session, blog.id)

    assert detail.is_liked is False
    assert detail.blog.like_count == 1


@pytest.mark.asyncio
async def test_blog_detail_missing_blog(session):
    with pytest.raises(NotFoundError):
        await aggregator.load_blog_detail(session, uuid.uuid4())


@pytest.mark.asyncio
async def test_author_page_lists_published_blogs(session, make_user, make_blog):
    author = make_user("writer@example.com", "writer", bio="Writes things")
    make_blog(author, title="Public")
    make_blog(author, title="Secret", published=False)

    profile, cards = await aggregator.load_author_page(session, author.id)

    assert profile.username == "writer"
    assert profile.bio == "Writes things"
    assert [card.title for card in cards] == ["Public"]


@pytest.mark.asyncio
async def test_author_page_without_profile(session, make_user):
    ghost = make_user("ghost@example.com", username=None)

    with pytest.raises(NotFoundError):
        await aggregator.load_author_page(session, ghost.id)
