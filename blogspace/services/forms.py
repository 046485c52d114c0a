"""Form validation performed before anything reaches the store."""

from __future__ import annotations

from dataclasses import dataclass

import pydantic

from blogspace.schemas.blog import BlogIn
from blogspace.services.errors import ValidationError


@dataclass(slots=True)
class BlogForm:
    """Raw editor fields as submitted from the create/edit page."""

    title: str = ""
    content: str = ""
    excerpt: str = ""
    cover_image: str = ""

    @classmethod
    def from_blog(cls, blog) -> BlogForm:
        return cls(
            title=blog.title,
            content=blog.content,
            excerpt=blog.excerpt or "",
            cover_image=blog.cover_image or "",
        )

    def validate(self, publish: bool) -> BlogIn:
        """Return the payload for the store.

        Raises:
            ValidationError: title or content is blank, or a field is too long.
        """
        if not self.title.strip() or not self.content.strip():
            raise ValidationError("Title and content are required")
        try:
            return BlogIn(
                title=self.title.strip(),
                content=self.content.strip(),
                excerpt=self.excerpt.strip() or None,
                cover_image=self.cover_image.strip() or None,
                published=publish,
            )
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(f"{field}: {first['msg']}", field=field) from exc
