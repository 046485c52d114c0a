"""ORM models."""

from blogspace.models.blog import Blog, Comment, Like
from blogspace.models.profile import Profile
from blogspace.models.user import User

__all__ = ["Blog", "Comment", "Like", "Profile", "User"]
