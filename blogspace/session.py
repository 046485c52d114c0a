"""Per-request identity context handed explicitly to every view."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Response, status

from blogspace.auth import (
    cookie_transport,
    current_optional_user,
    get_jwt_strategy,
)
from blogspace.models.user import User


@dataclass(frozen=True, slots=True)
class Viewer:
    """The signed-in identity performing the request."""

    id: uuid.UUID
    email: str

    @classmethod
    def from_user(cls, user: User) -> Viewer:
        return cls(id=user.id, email=user.email)

    def owns(self, user_id: uuid.UUID) -> bool:
        return self.id == user_id


async def get_viewer(
    user: User | None = Depends(current_optional_user),
) -> Viewer | None:
    """Viewer for the request, or ``None`` when signed out."""
    return Viewer.from_user(user) if user is not None else None


async def require_viewer(viewer: Viewer | None = Depends(get_viewer)) -> Viewer:
    """Viewer for JSON endpoints that need an identity."""
    if viewer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return viewer


async def set_login_cookie(response: Response, user: User) -> None:
    """Issue the same JWT cookie the fastapi-users login route would."""
    token = await get_jwt_strategy().write_token(user)
    response.set_cookie(
        cookie_transport.cookie_name,
        token,
        max_age=cookie_transport.cookie_max_age,
        path=cookie_transport.cookie_path,
        domain=cookie_transport.cookie_domain,
        secure=cookie_transport.cookie_secure,
        httponly=cookie_transport.cookie_httponly,
        samesite=cookie_transport.cookie_samesite,
    )


def clear_login_cookie(response: Response) -> None:
    response.delete_cookie(
        cookie_transport.cookie_name,
        path=cookie_transport.cookie_path,
        domain=cookie_transport.cookie_domain,
    )
