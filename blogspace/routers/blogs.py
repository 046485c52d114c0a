"""Feed, blog detail, likes, comments and deletion."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.database_async import get_async_session
from blogspace.security import csrf_protect, limiter
from blogspace.services import aggregator, blog_store
from blogspace.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    RemoteFailureError,
    ValidationError,
)
from blogspace.services.search import filter_blogs
from blogspace.session import Viewer, get_viewer
from blogspace.views import redirect, render_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["blogs"])


def detail_url(blog_id: uuid.UUID) -> str:
    return f"/blog/{blog_id}"


@router.get("/", response_class=HTMLResponse, name="home")
@limiter.limit("60/minute")
async def home(
    request: Request,
    q: str = Query("", max_length=200),
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    """Latest published stories with an optional title/excerpt filter."""
    toast = None
    try:
        cards = await aggregator.load_feed(session)
    except RemoteFailureError:
        logger.exception("Failed to load feed")
        cards, toast = [], "blog-load-failed"

    return render_page(
        request,
        "index.html",
        viewer,
        toast=toast,
        blogs=filter_blogs(cards, q.strip()),
        query=q,
    )


@router.get("/blog/{blog_id}", response_class=HTMLResponse, name="blog_detail")
@limiter.limit("60/minute")
async def blog_detail(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    """Single post with likes and comments. Drafts are visible to their owner only."""
    try:
        detail = await aggregator.load_blog_detail(
            session, blog_id, viewer.id if viewer else None
        )
    except NotFoundError:
        return redirect("/", toast="blog-not-found")
    except RemoteFailureError:
        logger.exception("Failed to load blog detail")
        return redirect("/", toast="blog-load-failed")

    is_owner = viewer is not None and viewer.owns(detail.blog.user_id)
    if not detail.blog.published and not is_owner:
        return redirect("/", toast="blog-not-found")

    return render_page(
        request,
        "blog_detail.html",
        viewer,
        detail=detail,
        blog=detail.blog,
        is_owner=is_owner,
    )


@router.post(
    "/blog/{blog_id}/like",
    name="blog_like",
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("30/minute")
async def like_blog(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect(detail_url(blog_id), toast="sign-in-to-like")

    result = await blog_store.toggle_like(session, blog_id, viewer.id)
    if isinstance(result.error, NotFoundError):
        return redirect("/", toast="blog-not-found")
    if not result.ok:
        return redirect(detail_url(blog_id), toast="like-failed")
    return redirect(detail_url(blog_id))


@router.post(
    "/blog/{blog_id}/comments",
    name="blog_comment",
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("20/minute")
async def comment_on_blog(
    request: Request,
    blog_id: uuid.UUID,
    content: str = Form(""),
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect(detail_url(blog_id), toast="sign-in-to-comment")

    try:
        result = await blog_store.post_comment(session, blog_id, viewer.id, content)
    except ValidationError:
        return redirect(detail_url(blog_id), toast="comment-empty")

    if isinstance(result.error, NotFoundError):
        return redirect("/", toast="blog-not-found")
    if not result.ok:
        return redirect(detail_url(blog_id), toast="comment-failed")
    return redirect(detail_url(blog_id), toast="comment-posted")


@router.post(
    "/blog/{blog_id}/delete",
    name="blog_delete",
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("20/minute")
async def delete_blog(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")

    result = await blog_store.delete_blog(session, blog_id, viewer.id)
    if isinstance(result.error, NotFoundError):
        return redirect("/", toast="blog-not-found")
    if isinstance(result.error, PermissionDeniedError):
        return redirect(detail_url(blog_id), toast="not-owner")
    if not result.ok:
        return redirect(detail_url(blog_id), toast="blog-delete-failed")
    return redirect("/", toast="blog-deleted")
