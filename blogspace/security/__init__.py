"""Security façade for CSRF, rate limiting, and headers middleware."""

from blogspace.middleware.security import SecurityHeadersMiddleware  # noqa: F401

from .csrf import (  # noqa: F401
    CSRF_COOKIE_NAME,
    CSRF_FORM_FIELD,
    csrf_protect,
    issue_csrf_token,
    set_csrf_cookie,
    validate_csrf,
)
from .rate_limit import limiter  # noqa: F401

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_FORM_FIELD",
    "csrf_protect",
    "issue_csrf_token",
    "set_csrf_cookie",
    "validate_csrf",
    "limiter",
    "SecurityHeadersMiddleware",
]
