"""Explicit mutation results and settled like state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from blogspace.schemas.blog import LikeStatus
from blogspace.services.errors import BlogSpaceError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class MutationResult(Generic[T]):
    """Outcome of a store mutation: either ``value`` or ``error`` is set.

    A failed mutation may also carry ``previous``, the state the store held
    just before the attempt, so callers can roll an optimistic view back to it.
    """

    value: T | None = None
    error: BlogSpaceError | None = None
    previous: T | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> MutationResult[T]:
        return cls(value=value)

    @classmethod
    def failure(
        cls, error: BlogSpaceError, previous: T | None = None
    ) -> MutationResult[T]:
        return cls(error=error, previous=previous)

    def unwrap(self) -> T | None:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True, slots=True)
class LikeState:
    """What a viewer sees on the like button."""

    liked: bool
    like_count: int

    @classmethod
    def from_status(cls, status: LikeStatus) -> LikeState:
        return cls(liked=status.liked, like_count=status.like_count)

    def toggled(self) -> LikeState:
        """Optimistic state assuming the toggle succeeds."""
        if self.liked:
            return LikeState(liked=False, like_count=max(0, self.like_count - 1))
        return LikeState(liked=True, like_count=self.like_count + 1)

    def settle(self, result: MutationResult[LikeStatus]) -> LikeState:
        """Resolve against the store outcome.

        ``self`` is the pre-toggle state: a failure reverts to it, a success
        adopts the store's authoritative counts.
        """
        if not result.ok or result.value is None:
            return self
        return LikeState.from_status(result.value)
