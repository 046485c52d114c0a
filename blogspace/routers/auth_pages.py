"""Sign-in / sign-up entry page and sign-out."""

from __future__ import annotations

import logging

import pydantic
from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users.exceptions import InvalidPasswordException, UserAlreadyExists
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.auth import UserManager, get_user_manager
from blogspace.database_async import get_async_session
from blogspace.schemas.profile import ProfileUpdate
from blogspace.schemas.user import UserCreate
from blogspace.security import csrf_protect, limiter
from blogspace.services import blog_store
from blogspace.session import Viewer, clear_login_cookie, get_viewer, set_login_cookie
from blogspace.views import redirect, render_page

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth-pages"])


def _auth_page(
    request: Request,
    mode: str,
    error: str | None = None,
    email: str = "",
    username: str = "",
):
    return render_page(
        request,
        "auth.html",
        None,
        status_code=status.HTTP_400_BAD_REQUEST if error else status.HTTP_200_OK,
        mode="signup" if mode == "signup" else "signin",
        error=error,
        email=email,
        username=username,
    )


@router.get("", response_class=HTMLResponse, name="auth")
@limiter.limit("30/minute")
async def auth_page(
    request: Request,
    mode: str = "signin",
    viewer: Viewer | None = Depends(get_viewer),
):
    if viewer is not None:
        return redirect("/")
    return _auth_page(request, mode)


@router.post(
    "/signin",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("10/minute")
async def sign_in(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    user_manager: UserManager = Depends(get_user_manager),
):
    credentials = OAuth2PasswordRequestForm(username=email.strip(), password=password)
    user = await user_manager.authenticate(credentials)
    if user is None or not user.is_active:
        return _auth_page(
            request, "signin", error="Invalid email or password", email=email
        )

    response = redirect("/", toast="signed-in")
    await set_login_cookie(response, user)
    return response


@router.post(
    "/signup",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
@limiter.limit("5/minute")
async def sign_up(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    username: str = Form(""),
    session: AsyncSession = Depends(get_async_session),
    user_manager: UserManager = Depends(get_user_manager),
):
    """Register an identity, name its profile and sign it in."""
    try:
        user_create = UserCreate(email=email.strip(), password=password)
    except pydantic.ValidationError:
        return _auth_page(
            request, "signup", error="Enter a valid email address", email=email
        )

    try:
        user = await user_manager.create(user_create, safe=True, request=request)
    except UserAlreadyExists:
        return _auth_page(
            request, "signup", error="An account with this email already exists"
        )
    except InvalidPasswordException as exc:
        return _auth_page(
            request, "signup", error=str(exc.reason), email=email, username=username
        )

    if username.strip():
        result = await blog_store.update_profile(
            session, user.id, user.id, ProfileUpdate(username=username[:100])
        )
        if not result.ok:
            logger.warning(
                "Could not apply chosen username", extra={"user_id": str(user.id)}
            )

    response = redirect("/", toast="signed-up")
    await set_login_cookie(response, user)
    return response


@router.post("/logout", dependencies=[Depends(csrf_protect)], name="logout")
async def sign_out(request: Request):
    response = redirect("/", toast="signed-out")
    clear_login_cookie(response)
    return response
