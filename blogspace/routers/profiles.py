"""Author profile page and self-service profile edits."""

from __future__ import annotations

import uuid

import pydantic
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.database_async import get_async_session
from blogspace.schemas.profile import ProfileUpdate
from blogspace.security import csrf_protect, limiter
from blogspace.services import aggregator, blog_store
from blogspace.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    RemoteFailureError,
    ValidationError,
)
from blogspace.session import Viewer, get_viewer
from blogspace.views import redirect, render_page

router = APIRouter(prefix="/profile", tags=["profiles"])


def profile_url(user_id: uuid.UUID) -> str:
    return f"/profile/{user_id}"


@router.get("/{user_id}", response_class=HTMLResponse, name="profile")
@limiter.limit("60/minute")
async def profile_page(
    request: Request,
    user_id: uuid.UUID,
    edit: bool = False,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    """Profile header plus the author's published posts."""
    try:
        profile, blogs = await aggregator.load_author_page(session, user_id)
    except NotFoundError:
        return redirect("/", toast="profile-not-found")
    except RemoteFailureError:
        return redirect("/", toast="blog-load-failed")

    is_own = viewer is not None and viewer.owns(user_id)
    return render_page(
        request,
        "profile.html",
        viewer,
        profile=profile,
        blogs=blogs,
        is_own_profile=is_own,
        editing=edit and is_own,
    )


@router.post("/{user_id}", dependencies=[Depends(csrf_protect)])
@limiter.limit("20/minute")
async def profile_update(
    request: Request,
    user_id: uuid.UUID,
    username: str = Form(""),
    bio: str = Form(""),
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")

    try:
        result = await blog_store.update_profile(
            session, user_id, viewer.id, ProfileUpdate(username=username, bio=bio)
        )
    except (ValidationError, pydantic.ValidationError):
        return redirect(profile_url(user_id), toast="profile-update-failed", edit="1")

    if isinstance(result.error, NotFoundError):
        return redirect("/", toast="profile-not-found")
    if isinstance(result.error, PermissionDeniedError):
        return redirect(profile_url(user_id), toast="profile-update-failed")
    if not result.ok:
        return redirect(profile_url(user_id), toast="profile-update-failed", edit="1")
    return redirect(profile_url(user_id), toast="profile-updated")
