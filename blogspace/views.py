"""Shared page rendering and redirect helpers for the HTML routers."""

from __future__ import annotations

from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import RedirectResponse

from blogspace.constants import lookup_toast
from blogspace.security import issue_csrf_token, set_csrf_cookie
from blogspace.session import Viewer
from blogspace.staticfiles import templates


def render_page(
    request: Request,
    template: str,
    viewer: Viewer | None,
    *,
    status_code: int = status.HTTP_200_OK,
    toast: str | None = None,
    **extra,
):
    """Render a page with navigation context, CSRF token and pending toast."""
    csrf_token = issue_csrf_token(request)
    ctx = {
        "request": request,
        "viewer": viewer,
        "csrf_token": csrf_token,
        "toast": lookup_toast(toast or request.query_params.get("toast")),
        **extra,
    }
    response = templates.TemplateResponse(request, template, ctx, status_code=status_code)
    set_csrf_cookie(response, csrf_token)
    return response


def redirect(url: str, toast: str | None = None, **params: str) -> RedirectResponse:
    """303 redirect (post/redirect/get), optionally carrying a toast key."""
    query = {**params}
    if toast:
        query["toast"] = toast
    if query:
        url = f"{url}?{urlencode(query)}"
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
