"""Data access functions for blogs, comments, likes and profiles.

Every function takes the request's ``AsyncSession`` and issues a small number
of statements against one table. Reads raise ``NotFoundError`` or
``RemoteFailureError``; mutations return a ``MutationResult`` and roll the
session back on failure so callers never observe a half-applied change.

Owner-scoped mutations carry the ``user_id = actor`` predicate in the
statement itself, the same way a row-level security policy would.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.config import settings
from blogspace.models.blog import Blog, Comment, Like
from blogspace.models.profile import Profile
from blogspace.observability.metrics import (
    BLOG_MUTATIONS,
    COMMENTS_POSTED,
    LIKE_TOGGLES,
)
from blogspace.schemas.blog import BlogIn, LikeStatus
from blogspace.schemas.profile import ProfileUpdate
from blogspace.services.errors import (
    BlogSpaceError,
    NotFoundError,
    PermissionDeniedError,
    RemoteFailureError,
    ValidationError,
)
from blogspace.services.results import MutationResult

logger = logging.getLogger(__name__)

_like_locks: weakref.WeakValueDictionary[tuple[uuid.UUID, uuid.UUID], asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


@asynccontextmanager
async def _like_lock(blog_id: uuid.UUID, user_id: uuid.UUID) -> AsyncIterator[None]:
    """Serialize toggles of one (user, blog) pair within this process."""
    key = (user_id, blog_id)
    lock = _like_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _like_locks[key] = lock
    async with lock:
        yield


def make_excerpt(content: str, length: int | None = None) -> str:
    """Leading slice of ``content`` used when a writer leaves the excerpt empty."""
    if length is None:
        length = settings.excerpt_length
    return content[:length]


def _blog_values(data: BlogIn) -> dict[str, object]:
    content = data.content.strip()
    excerpt = (data.excerpt or "").strip() or make_excerpt(content)
    cover_image = (data.cover_image or "").strip() or None
    return {
        "title": data.title.strip(),
        "excerpt": excerpt,
        "content": content,
        "cover_image": cover_image,
        "published": data.published,
    }


async def _rejection(
    session: AsyncSession, model: type, key_column, key: uuid.UUID
) -> BlogSpaceError:
    """Explain why an owner-scoped statement matched no rows."""
    exists = await session.scalar(select(key_column).where(key_column == key))
    if exists is None:
        return NotFoundError(model.__name__, key)
    return PermissionDeniedError(f"{model.__name__} {key} is owned by another user")


async def _can_interact(
    session: AsyncSession, blog_id: uuid.UUID, actor_id: uuid.UUID
) -> bool:
    """A blog takes likes and comments when published or seen by its owner."""
    row = (
        await session.execute(
            select(Blog.user_id, Blog.published).where(Blog.id == blog_id)
        )
    ).first()
    return row is not None and (row.published or row.user_id == actor_id)


async def _remote_failure(
    session: AsyncSession, exc: SQLAlchemyError, action: str
) -> RemoteFailureError:
    await session.rollback()
    logger.exception("Store failure during %s", action)
    return RemoteFailureError(f"Failed to {action}")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def _like_count(blog_id: uuid.UUID):
    return select(func.count(Like.id)).where(Like.blog_id == blog_id)


async def fetch_blog(session: AsyncSession, blog_id: uuid.UUID) -> Blog:
    """Return one blog regardless of its published flag."""
    try:
        blog = await session.get(Blog, blog_id)
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load blog") from exc
    if blog is None:
        raise NotFoundError("Blog", blog_id)
    return blog


async def fetch_published_blogs(
    session: AsyncSession, limit: int | None = None
) -> list[Blog]:
    """Published blogs, newest first, truncated to ``limit``."""
    stmt = (
        select(Blog)
        .where(Blog.published.is_(True))
        .order_by(Blog.created_at.desc())
        .limit(limit if limit is not None else settings.feed_limit)
    )
    try:
        return list((await session.scalars(stmt)).all())
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load blogs") from exc


async def fetch_blogs_by_author(session: AsyncSession, user_id: uuid.UUID) -> list[Blog]:
    stmt = (
        select(Blog)
        .where(Blog.user_id == user_id, Blog.published.is_(True))
        .order_by(Blog.created_at.desc())
    )
    try:
        return list((await session.scalars(stmt)).all())
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load author blogs") from exc


async def fetch_comments(session: AsyncSession, blog_id: uuid.UUID) -> list[Comment]:
    stmt = (
        select(Comment)
        .where(Comment.blog_id == blog_id)
        .order_by(Comment.created_at.desc())
    )
    try:
        return list((await session.scalars(stmt)).all())
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load comments") from exc


async def fetch_like_count(session: AsyncSession, blog_id: uuid.UUID) -> int:
    stmt = _like_count(blog_id)
    try:
        return int(await session.scalar(stmt) or 0)
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to count likes") from exc


async def fetch_is_liked(
    session: AsyncSession, blog_id: uuid.UUID, user_id: uuid.UUID
) -> bool:
    stmt = select(Like.id).where(Like.blog_id == blog_id, Like.user_id == user_id)
    try:
        return (await session.scalar(stmt)) is not None
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load like state") from exc


async def fetch_profile(session: AsyncSession, user_id: uuid.UUID) -> Profile:
    try:
        profile = await session.get(Profile, user_id)
    except SQLAlchemyError as exc:
        raise RemoteFailureError("Failed to load profile") from exc
    if profile is None:
        raise NotFoundError("Profile", user_id)
    return profile


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_profile(
    session: AsyncSession, user_id: uuid.UUID, username: str
) -> MutationResult[Profile]:
    """Insert the profile row that accompanies a newly registered identity."""
    try:
        existing = await session.get(Profile, user_id)
        if existing is not None:
            return MutationResult.success(existing)
        profile = Profile(user_id=user_id, username=username.strip() or "user")
        session.add(profile)
        await session.commit()
    except SQLAlchemyError as exc:
        return MutationResult.failure(
            await _remote_failure(session, exc, "create profile")
        )
    logger.info("Created profile", extra={"user_id": str(user_id)})
    return MutationResult.success(profile)


async def create_blog(
    session: AsyncSession, actor_id: uuid.UUID, data: BlogIn
) -> MutationResult[Blog]:
    """Insert a blog owned by ``actor_id``."""
    blog = Blog(user_id=actor_id, **_blog_values(data))
    try:
        session.add(blog)
        await session.commit()
        await session.refresh(blog)
    except SQLAlchemyError as exc:
        BLOG_MUTATIONS.labels("create", "failed").inc()
        return MutationResult.failure(await _remote_failure(session, exc, "save blog"))

    BLOG_MUTATIONS.labels("create", "ok").inc()
    logger.info(
        "Created blog",
        extra={"blog_id": str(blog.id), "published": blog.published},
    )
    return MutationResult.success(blog)


async def update_blog(
    session: AsyncSession, blog_id: uuid.UUID, actor_id: uuid.UUID, data: BlogIn
) -> MutationResult[Blog]:
    """Overwrite the editable fields of a blog the actor owns."""
    stmt = (
        update(Blog)
        .where(Blog.id == blog_id, Blog.user_id == actor_id)
        .values(**_blog_values(data), updated_at=datetime.now(UTC))
    )
    try:
        result = await session.execute(stmt)
        if result.rowcount == 0:
            error = await _rejection(session, Blog, Blog.id, blog_id)
            await session.rollback()
            BLOG_MUTATIONS.labels("update", "rejected").inc()
            return MutationResult.failure(error)
        await session.commit()
        blog = await session.get(Blog, blog_id, populate_existing=True)
    except SQLAlchemyError as exc:
        BLOG_MUTATIONS.labels("update", "failed").inc()
        return MutationResult.failure(
            await _remote_failure(session, exc, "update blog")
        )

    BLOG_MUTATIONS.labels("update", "ok").inc()
    logger.info("Updated blog", extra={"blog_id": str(blog_id)})
    return MutationResult.success(blog)


async def delete_blog(
    session: AsyncSession, blog_id: uuid.UUID, actor_id: uuid.UUID
) -> MutationResult[None]:
    """Delete a blog the actor owns together with its comments and likes."""
    try:
        owner = await session.scalar(select(Blog.user_id).where(Blog.id == blog_id))
        if owner is None:
            BLOG_MUTATIONS.labels("delete", "rejected").inc()
            return MutationResult.failure(NotFoundError("Blog", blog_id))
        if owner != actor_id:
            BLOG_MUTATIONS.labels("delete", "rejected").inc()
            return MutationResult.failure(
                PermissionDeniedError(f"Blog {blog_id} is owned by another user")
            )
        await session.execute(delete(Like).where(Like.blog_id == blog_id))
        await session.execute(delete(Comment).where(Comment.blog_id == blog_id))
        await session.execute(
            delete(Blog).where(Blog.id == blog_id, Blog.user_id == actor_id)
        )
        await session.commit()
    except SQLAlchemyError as exc:
        BLOG_MUTATIONS.labels("delete", "failed").inc()
        return MutationResult.failure(
            await _remote_failure(session, exc, "delete blog")
        )

    BLOG_MUTATIONS.labels("delete", "ok").inc()
    logger.info("Deleted blog", extra={"blog_id": str(blog_id)})
    return MutationResult.success(None)


async def toggle_like(
    session: AsyncSession, blog_id: uuid.UUID, user_id: uuid.UUID
) -> MutationResult[LikeStatus]:
    """Flip the like of ``user_id`` on ``blog_id``.

    A conditional delete runs first; the insert only happens when nothing was
    deleted. Both statements and the recount share one transaction. Drafts of
    other users are reported as missing.

    A failed toggle carries the pre-toggle ``LikeStatus`` as ``previous`` once
    it has been read under the lock.
    """
    previous: LikeStatus | None = None
    async with _like_lock(blog_id, user_id):
        try:
            if not await _can_interact(session, blog_id, user_id):
                await session.rollback()
                return MutationResult.failure(NotFoundError("Blog", blog_id))

            count_before = int(await session.scalar(_like_count(blog_id)) or 0)
            removed = await session.execute(
                delete(Like).where(Like.blog_id == blog_id, Like.user_id == user_id)
            )
            liked = removed.rowcount == 0
            previous = LikeStatus(liked=not liked, like_count=count_before)
            if liked:
                session.add(Like(blog_id=blog_id, user_id=user_id))
                await session.flush()
            count = await session.scalar(_like_count(blog_id))
            await session.commit()
        except SQLAlchemyError as exc:
            LIKE_TOGGLES.labels("failed").inc()
            return MutationResult.failure(
                await _remote_failure(session, exc, "toggle like"), previous=previous
            )

    LIKE_TOGGLES.labels("liked" if liked else "unliked").inc()
    return MutationResult.success(LikeStatus(liked=liked, like_count=int(count or 0)))


async def post_comment(
    session: AsyncSession, blog_id: uuid.UUID, user_id: uuid.UUID, content: str
) -> MutationResult[Comment]:
    """Store a comment.

    Raises:
        ValidationError: ``content`` is empty or whitespace. Nothing is sent
            to the store in that case.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty", field="content")

    try:
        if not await _can_interact(session, blog_id, user_id):
            await session.rollback()
            return MutationResult.failure(NotFoundError("Blog", blog_id))
        comment = Comment(blog_id=blog_id, user_id=user_id, content=text)
        session.add(comment)
        await session.commit()
        await session.refresh(comment)
    except SQLAlchemyError as exc:
        return MutationResult.failure(
            await _remote_failure(session, exc, "post comment")
        )

    COMMENTS_POSTED.inc()
    return MutationResult.success(comment)


async def update_profile(
    session: AsyncSession,
    user_id: uuid.UUID,
    actor_id: uuid.UUID,
    fields: ProfileUpdate,
) -> MutationResult[Profile]:
    """Apply the set fields of ``fields`` to the actor's own profile.

    Raises:
        ValidationError: ``username`` was supplied but is blank.
    """
    values = fields.model_dump(exclude_unset=True)
    if "username" in values:
        username = (values["username"] or "").strip()
        if not username:
            raise ValidationError("Username cannot be empty", field="username")
        values["username"] = username
    if "bio" in values and values["bio"] is not None:
        values["bio"] = values["bio"].strip()
    if "avatar_url" in values:
        values["avatar_url"] = (values["avatar_url"] or "").strip() or None

    try:
        if not values:
            return MutationResult.success(await fetch_profile(session, user_id))
        result = await session.execute(
            update(Profile)
            .where(Profile.user_id == user_id)
            .where(Profile.user_id == actor_id)
            .values(**values)
        )
        if result.rowcount == 0:
            error = await _rejection(session, Profile, Profile.user_id, user_id)
            await session.rollback()
            return MutationResult.failure(error)
        await session.commit()
        profile = await session.get(Profile, user_id, populate_existing=True)
    except (NotFoundError, RemoteFailureError) as exc:
        return MutationResult.failure(exc)
    except SQLAlchemyError as exc:
        return MutationResult.failure(
            await _remote_failure(session, exc, "update profile")
        )

    logger.info("Updated profile", extra={"user_id": str(user_id)})
    return MutationResult.success(profile)
