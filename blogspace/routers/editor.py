"""Create and edit pages for blog posts."""

from __future__ import annotations

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.constants import TOASTS
from blogspace.database_async import get_async_session
from blogspace.routers.blogs import detail_url
from blogspace.security import csrf_protect, limiter
from blogspace.services import blog_store
from blogspace.services.errors import (
    NotFoundError,
    PermissionDeniedError,
    RemoteFailureError,
    ValidationError,
)
from blogspace.services.forms import BlogForm
from blogspace.session import Viewer, get_viewer
from blogspace.views import redirect, render_page

router = APIRouter(tags=["editor"])

SaveAction = Literal["draft", "publish"]


def _form_page(
    request: Request,
    viewer: Viewer,
    form: BlogForm,
    blog_id: uuid.UUID | None = None,
    error: str | None = None,
):
    return render_page(
        request,
        "blog_form.html",
        viewer,
        status_code=(
            status.HTTP_422_UNPROCESSABLE_ENTITY if error else status.HTTP_200_OK
        ),
        form=form,
        blog_id=blog_id,
        error=error,
    )


def _saved_toast(publish: bool, created: bool) -> str:
    if publish:
        return "blog-published"
    return "blog-draft-saved" if created else "blog-updated"


@router.get("/create", response_class=HTMLResponse, name="blog_create")
@limiter.limit("30/minute")
async def create_page(request: Request, viewer: Viewer | None = Depends(get_viewer)):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")
    return _form_page(request, viewer, BlogForm())


@router.post(
    "/create",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("20/minute")
async def create_submit(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    excerpt: str = Form(""),
    cover_image: str = Form(""),
    action: SaveAction = Form("draft"),
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")

    form = BlogForm(title, content, excerpt, cover_image)
    publish = action == "publish"
    try:
        payload = form.validate(publish)
    except ValidationError as exc:
        return _form_page(request, viewer, form, error=str(exc))

    result = await blog_store.create_blog(session, viewer.id, payload)
    if not result.ok:
        return _form_page(
            request, viewer, form, error=TOASTS["blog-save-failed"][1]
        )
    return redirect(detail_url(result.value.id), toast=_saved_toast(publish, True))


@router.get("/edit/{blog_id}", response_class=HTMLResponse, name="blog_edit")
@limiter.limit("30/minute")
async def edit_page(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")
    try:
        blog = await blog_store.fetch_blog(session, blog_id)
    except NotFoundError:
        return redirect("/", toast="blog-not-found")
    except RemoteFailureError:
        return redirect("/", toast="blog-load-failed")
    if not viewer.owns(blog.user_id):
        return redirect(detail_url(blog_id), toast="not-owner")
    return _form_page(request, viewer, BlogForm.from_blog(blog), blog_id=blog_id)


@router.post(
    "/edit/{blog_id}",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("20/minute")
async def edit_submit(
    request: Request,
    blog_id: uuid.UUID,
    title: str = Form(""),
    content: str = Form(""),
    excerpt: str = Form(""),
    cover_image: str = Form(""),
    action: SaveAction = Form("draft"),
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is None:
        return redirect("/auth", toast="sign-in-required")

    form = BlogForm(title, content, excerpt, cover_image)
    publish = action == "publish"
    try:
        payload = form.validate(publish)
    except ValidationError as exc:
        return _form_page(request, viewer, form, blog_id=blog_id, error=str(exc))

    result = await blog_store.update_blog(session, blog_id, viewer.id, payload)
    if isinstance(result.error, NotFoundError):
        return redirect("/", toast="blog-not-found")
    if isinstance(result.error, PermissionDeniedError):
        return redirect(detail_url(blog_id), toast="not-owner")
    if not result.ok:
        return _form_page(
            request,
            viewer,
            form,
            blog_id=blog_id,
            error=TOASTS["blog-save-failed"][1],
        )
    return redirect(detail_url(blog_id), toast=_saved_toast(publish, False))
