"""Assemble list and detail view records from blog rows.

Related data is fetched with one batched query per relation (authors, like
counts, comment counts) keyed by the set of ids on the page, then joined back
in the order the blogs were given.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.constants import UNKNOWN_AUTHOR
from blogspace.models.blog import Blog, Comment, Like
from blogspace.models.profile import Profile
from blogspace.observability.metrics import PROFILE_FALLBACKS
from blogspace.schemas.blog import BlogCard, BlogDetail, BlogOut, CommentOut
from blogspace.schemas.profile import ProfileOut
from blogspace.services import blog_store
from blogspace.services.errors import RemoteFailureError

logger = logging.getLogger(__name__)


async def fetch_author_names(
    session: AsyncSession, user_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, str]:
    """Map user ids to usernames.

    Lookup failures are not fatal: the caller falls back to the placeholder
    name for every id absent from the returned mapping. The query runs in a
    savepoint so a failure leaves the enclosing transaction usable.
    """
    ids = set(user_ids)
    if not ids:
        return {}
    stmt = select(Profile.user_id, Profile.username).where(Profile.user_id.in_(ids))
    try:
        async with session.begin_nested():
            rows = (await session.execute(stmt)).all()
    except SQLAlchemyError:
        logger.warning("Author lookup failed; using placeholder names", exc_info=True)
        PROFILE_FALLBACKS.inc(len(ids))
        return {}

    names = {user_id: username for user_id, username in rows}
    missing = ids - names.keys()
    if missing:
        logger.warning(
            "No profile for %d author(s); using placeholder name", len(missing)
        )
        PROFILE_FALLBACKS.inc(len(missing))
    return names


async def _count_by_blog(
    session: AsyncSession, model: type[Like] | type[Comment], blog_ids: list[uuid.UUID]
) -> dict[uuid.UUID, int]:
    stmt = (
        select(model.blog_id, func.count(model.id))
        .where(model.blog_id.in_(blog_ids))
        .group_by(model.blog_id)
    )
    try:
        rows = (await session.execute(stmt)).all()
    except SQLAlchemyError as exc:
        raise RemoteFailureError(f"Failed to count {model.__tablename__}") from exc
    return {blog_id: int(count) for blog_id, count in rows}


def _card(blog: Blog, author_name: str, like_count: int, comment_count: int) -> BlogCard:
    return BlogCard(
        **BlogOut.model_validate(blog).model_dump(),
        author_name=author_name,
        like_count=like_count,
        comment_count=comment_count,
    )


async def aggregate_blogs(session: AsyncSession, blogs: Sequence[Blog]) -> list[BlogCard]:
    """Enrich ``blogs`` with author name, like count and comment count.

    Output order matches input order.
    """
    if not blogs:
        return []
    blog_ids = [blog.id for blog in blogs]
    names = await fetch_author_names(session, (blog.user_id for blog in blogs))
    likes = await _count_by_blog(session, Like, blog_ids)
    comments = await _count_by_blog(session, Comment, blog_ids)
    return [
        _card(
            blog,
            names.get(blog.user_id, UNKNOWN_AUTHOR),
            likes.get(blog.id, 0),
            comments.get(blog.id, 0),
        )
        for blog in blogs
    ]


async def load_feed(session: AsyncSession, limit: int | None = None) -> list[BlogCard]:
    """Latest published blogs as cards."""
    blogs = await blog_store.fetch_published_blogs(session, limit)
    return await aggregate_blogs(session, blogs)


async def load_author_page(
    session: AsyncSession, user_id: uuid.UUID
) -> tuple[ProfileOut, list[BlogCard]]:
    """Profile plus the author's published blogs.

    Raises:
        NotFoundError: the identity has no profile.
    """
    profile = await blog_store.fetch_profile(session, user_id)
    blogs = await blog_store.fetch_blogs_by_author(session, user_id)
    return ProfileOut.model_validate(profile), await aggregate_blogs(session, blogs)


async def load_blog_detail(
    session: AsyncSession, blog_id: uuid.UUID, viewer_id: uuid.UUID | None = None
) -> BlogDetail:
    """Blog with counts, the viewer's like state and named comments.

    Raises:
        NotFoundError: no blog with ``blog_id``.
    """
    blog = await blog_store.fetch_blog(session, blog_id)
    comments = await blog_store.fetch_comments(session, blog_id)
    names = await fetch_author_names(
        session, {blog.user_id, *(comment.user_id for comment in comments)}
    )
    like_count = await blog_store.fetch_like_count(session, blog_id)
    is_liked = False
    if viewer_id is not None:
        is_liked = await blog_store.fetch_is_liked(session, blog_id, viewer_id)

    return BlogDetail(
        blog=_card(
            blog, names.get(blog.user_id, UNKNOWN_AUTHOR), like_count, len(comments)
        ),
        is_liked=is_liked,
        comments=[
            CommentOut(
                id=comment.id,
                blog_id=comment.blog_id,
                user_id=comment.user_id,
                content=comment.content,
                created_at=comment.created_at,
                author_name=names.get(comment.user_id, UNKNOWN_AUTHOR),
            )
            for comment in comments
        ],
    )
