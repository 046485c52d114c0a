"""Error taxonomy shared by the store, aggregators and views."""

from __future__ import annotations


class BlogSpaceError(RuntimeError):
    """Base class for application errors."""


class NotFoundError(BlogSpaceError):
    """The requested row does not exist."""

    def __init__(self, entity: str, key: object):
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key


class ValidationError(BlogSpaceError):
    """Input rejected locally before any statement reached the store."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class PermissionDeniedError(BlogSpaceError):
    """The row exists but the acting identity does not own it."""


class RemoteFailureError(BlogSpaceError):
    """The store failed to execute a statement."""
