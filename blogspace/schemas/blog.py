"""Pydantic schemas for blogs, comments and likes."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlogIn(BaseModel):
    """Fields a writer submits when saving a blog.

    ``excerpt`` left empty is filled from the start of ``content`` by the store.
    """

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: str | None = Field(default=None, max_length=500)
    cover_image: str | None = Field(default=None, max_length=1024)
    published: bool = False


class BlogOut(BaseModel):
    """Blog row as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    excerpt: str
    content: str
    cover_image: str | None = None
    published: bool
    created_at: datetime
    updated_at: datetime | None = None


class BlogCard(BlogOut):
    """Blog enriched with author name and related counts for listings."""

    author_name: str
    like_count: int = 0
    comment_count: int = 0


class CommentOut(BaseModel):
    """Comment with its author's display name."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    blog_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime
    author_name: str = "Unknown"


class CommentIn(BaseModel):
    content: str


class BlogDetail(BaseModel):
    """Everything the detail view shows for one blog."""

    blog: BlogCard
    is_liked: bool = False
    comments: list[CommentOut] = Field(default_factory=list)


class LikeStatus(BaseModel):
    """Authoritative like state of one (blog, viewer) pair."""

    liked: bool
    like_count: int
