"""Presentation helpers for blog bodies and timestamps."""

from __future__ import annotations

import html
from datetime import UTC, datetime

import markdown
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.tables import TableExtension

WORDS_PER_MINUTE = 200

_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


class BlogRenderer:
    """Markdown renderer for post bodies."""

    def __init__(self):
        self.md = markdown.Markdown(
            extensions=[
                FencedCodeExtension(),
                TableExtension(),
                "nl2br",
                "sane_lists",
            ]
        )

    def render_markdown(self, content: str) -> str:
        """Render markdown to HTML.

        Raw HTML in ``content`` is escaped first, so authors get markdown
        formatting but cannot inject markup.

        Args:
            content: Markdown content

        Returns:
            Rendered HTML
        """
        self.md.reset()
        return self.md.convert(html.escape(content, quote=False))

    @staticmethod
    def calculate_reading_time(content: str) -> int:
        """Estimated reading time in minutes (minimum 1)."""
        word_count = len(content.split())
        return max(1, word_count // WORDS_PER_MINUTE)


def time_ago(value: datetime, now: datetime | None = None) -> str:
    """Relative timestamp such as ``"3 hours ago"``.

    Naive datetimes (SQLite drops the offset) are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "less than a minute ago" if seconds >= 0 else "just now"
    for name, size in _UNITS:
        amount = seconds // size
        if amount >= 1:
            plural = "" if amount == 1 else "s"
            return f"{amount} {name}{plural} ago"
    return "just now"


def initial(name: str | None) -> str:
    """Avatar letter for a display name or e-mail."""
    return (name or "?")[:1].upper() or "?"


blog_renderer = BlogRenderer()
