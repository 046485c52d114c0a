"""Create users, profiles, blogs, comments and likes.

Revision ID: 20260101_01
Revises:
Create Date: 2026-01-01 00:00:00
"""

# pylint: disable=invalid-name,missing-module-docstring

from __future__ import annotations

import sqlalchemy as sa
from fastapi_users_db_sqlalchemy.generics import GUID

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260101_01"
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name: str, index: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
        index=index,
    )


def upgrade():
    """Create the BlogSpace schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", GUID(), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("hashed_password", sa.String(length=1024), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("is_superuser", sa.Boolean(), nullable=False),
            sa.Column("is_verified", sa.Boolean(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    if not inspector.has_table("profiles"):
        op.create_table(
            "profiles",
            sa.Column("user_id", GUID(), nullable=False),
            sa.Column("username", sa.String(length=100), nullable=False),
            sa.Column("bio", sa.Text(), nullable=True),
            sa.Column("avatar_url", sa.String(length=1024), nullable=True),
            _timestamp("created_at"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("user_id"),
        )

    if not inspector.has_table("blogs"):
        op.create_table(
            "blogs",
            sa.Column("id", GUID(), nullable=False),
            sa.Column("user_id", GUID(), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("excerpt", sa.String(length=500), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("cover_image", sa.String(length=1024), nullable=True),
            sa.Column(
                "published", sa.Boolean(), nullable=False, server_default="0"
            ),
            _timestamp("created_at"),
            _timestamp("updated_at"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_blogs_user_id"), "blogs", ["user_id"])
        op.create_index(op.f("ix_blogs_published"), "blogs", ["published"])
        op.create_index(op.f("ix_blogs_created_at"), "blogs", ["created_at"])

    if not inspector.has_table("comments"):
        op.create_table(
            "comments",
            sa.Column("id", GUID(), nullable=False),
            sa.Column("blog_id", GUID(), nullable=False),
            sa.Column("user_id", GUID(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            _timestamp("created_at"),
            sa.ForeignKeyConstraint(["blog_id"], ["blogs.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_comments_blog_id"), "comments", ["blog_id"])
        op.create_index(op.f("ix_comments_user_id"), "comments", ["user_id"])
        op.create_index(op.f("ix_comments_created_at"), "comments", ["created_at"])

    if not inspector.has_table("likes"):
        op.create_table(
            "likes",
            sa.Column("id", GUID(), nullable=False),
            sa.Column("blog_id", GUID(), nullable=False),
            sa.Column("user_id", GUID(), nullable=False),
            _timestamp("created_at"),
            sa.ForeignKeyConstraint(["blog_id"], ["blogs.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("blog_id", "user_id", name="uq_likes_blog_user"),
        )
        op.create_index(op.f("ix_likes_blog_id"), "likes", ["blog_id"])
        op.create_index(op.f("ix_likes_user_id"), "likes", ["user_id"])


def downgrade():
    """Drop the BlogSpace schema."""
    op.drop_table("likes")
    op.drop_table("comments")
    op.drop_table("blogs")
    op.drop_table("profiles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
