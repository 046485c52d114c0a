"""In-memory search over already loaded cards."""

from __future__ import annotations

from collections.abc import Iterable

from blogspace.schemas.blog import BlogCard


def matches(card: BlogCard, query: str) -> bool:
    needle = query.lower()
    return needle in card.title.lower() or needle in card.excerpt.lower()


def filter_blogs(cards: Iterable[BlogCard], query: str | None) -> list[BlogCard]:
    """Case-insensitive substring match on title or excerpt.

    An empty query keeps every card.
    """
    if not query:
        return list(cards)
    return [card for card in cards if matches(card, query)]
