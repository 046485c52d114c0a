"""Pydantic schemas for author profiles."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    username: str
    bio: str | None = None
    avatar_url: str | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update; ``None`` fields are left untouched."""

    username: str | None = Field(default=None, max_length=100)
    bio: str | None = None
    avatar_url: str | None = Field(default=None, max_length=1024)
