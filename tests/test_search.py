"""Tests for the in-memory title/excerpt search."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from blogspace.schemas.blog import BlogCard
from blogspace.services.search import filter_blogs, matches


def _card(title: str, excerpt: str = "") -> BlogCard:
    return BlogCard(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        title=title,
        excerpt=excerpt,
        content="",
        published=True,
        created_at=datetime.now(UTC),
        author_name="writer",
    )


def test_query_matches_title_or_excerpt_case_insensitively():
    cards = [
        _card("Ocean Tides"),
        _card("Mountains", "An ocean view from the peak"),
        _card("Deserts", "Dry and hot"),
    ]

    result = filter_blogs(cards, "ocean")

    assert [card.title for card in result] == ["Ocean Tides", "Mountains"]


def test_empty_query_keeps_every_card():
    cards = [_card("One"), _card("Two")]

    assert filter_blogs(cards, "") == cards
    assert filter_blogs(cards, None) == cards


def test_content_is_not_searched():
    card = _card("Title", "Excerpt").model_copy(update={"content": "hidden ocean"})

    assert not matches(card, "ocean")


def test_ocean_query_over_feed():
    cards = [_card("Ocean Views", "A trip"), _card("Mountains", "Peaks and valleys")]

    assert [card.title for card in filter_blogs(cards, "ocean")] == ["Ocean Views"]
