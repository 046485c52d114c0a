"""Display constants for the BlogSpace views."""

from __future__ import annotations

from typing import Literal

# ==========================================
# Placeholders
# ==========================================

UNKNOWN_AUTHOR = "Unknown"
NO_BIO = "No bio yet"

# ==========================================
# Toast Messages
# ==========================================
#
# Structure:
# key -> (level, message)
#
# Views redirect with ``?toast=<key>``; unknown keys are ignored by the
# template so arbitrary text can never be injected through the query string.

ToastLevel = Literal["success", "error"]

TOASTS: dict[str, tuple[ToastLevel, str]] = {
    "blog-not-found": ("error", "Blog not found"),
    "blog-load-failed": ("error", "Failed to load blog"),
    "blog-published": ("success", "Blog published!"),
    "blog-updated": ("success", "Blog updated!"),
    "blog-draft-saved": ("success", "Blog saved as draft!"),
    "blog-save-failed": ("error", "Failed to save blog"),
    "blog-deleted": ("success", "Blog deleted"),
    "blog-delete-failed": ("error", "Failed to delete blog"),
    "not-owner": ("error", "You can only change your own posts"),
    "comment-posted": ("success", "Comment posted!"),
    "comment-failed": ("error", "Failed to post comment"),
    "comment-empty": ("error", "Comment cannot be empty"),
    "like-failed": ("error", "Failed to update like"),
    "sign-in-to-like": ("error", "Please sign in to like posts"),
    "sign-in-to-comment": ("error", "Please sign in to comment"),
    "sign-in-required": ("error", "Please sign in to continue"),
    "profile-not-found": ("error", "Profile not found"),
    "profile-updated": ("success", "Profile updated!"),
    "profile-update-failed": ("error", "Failed to update profile"),
    "signed-in": ("success", "Welcome back!"),
    "signed-up": ("success", "Account created!"),
    "signed-out": ("success", "Signed out"),
}


def lookup_toast(key: str | None) -> tuple[ToastLevel, str] | None:
    """Resolve a ``toast`` query value to ``(level, message)``."""
    if not key:
        return None
    return TOASTS.get(key)
