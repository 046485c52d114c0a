"""
FastAPI Application - BlogSpace multi-user blogging platform
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogspace import models  # noqa: F401 - registers tables on Base.metadata
from blogspace.auth import auth_backend, fastapi_users
from blogspace.config import settings
from blogspace.database import init_database
from blogspace.database_async import get_async_session
from blogspace.middleware.security import DEFAULT_CSP, SecurityHeadersMiddleware
from blogspace.observability.logging import configure_logging
from blogspace.observability.metrics import MetricsMiddleware, metrics_response
from blogspace.routers.api import router as api_router
from blogspace.routers.auth_pages import router as auth_pages_router
from blogspace.routers.blogs import router as blogs_router
from blogspace.routers.editor import router as editor_router
from blogspace.routers.profiles import router as profiles_router
from blogspace.schemas.user import UserCreate, UserRead, UserUpdate
from blogspace.security import limiter
from blogspace.staticfiles import CachedStaticFiles, templates

logger = logging.getLogger(__name__)


# ==========================================
# Application Lifespan
# ==========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting BlogSpace (%s)", settings.environment)
    init_database()
    logger.info("Database ready")
    yield
    logger.info("Shutting down BlogSpace")


# ==========================================
# Environment & CSP
# ==========================================
configure_logging(settings.log_level.upper(), settings.log_json)
IS_PROD = settings.is_production
CSP_DIRECTIVES = list(DEFAULT_CSP)
if IS_PROD:
    CSP_DIRECTIVES.append("upgrade-insecure-requests")


# ==========================================
# Exception handlers (define BEFORE registration)
# ==========================================
def _accepts_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    payload = {"detail": "Rate limit exceeded. Please retry shortly."}
    if _accepts_html(request):
        return HTMLResponse(
            "<h2>Too Many Requests</h2><p>Please retry shortly.</p>",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
    return JSONResponse(payload, status_code=status.HTTP_429_TOO_MANY_REQUESTS)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Error pages for browsers, JSON for everything else."""
    if _accepts_html(request):
        if exc.status_code in (401, 403):
            return templates.TemplateResponse(
                request,
                "401.html",
                {"viewer": None, "toast": None, "detail": exc.detail},
                status_code=exc.status_code,
            )
        if exc.status_code == 404:
            return templates.TemplateResponse(
                request,
                "404.html",
                {"viewer": None, "toast": None},
                status_code=status.HTTP_404_NOT_FOUND,
            )

    return JSONResponse(
        {"detail": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


# ==========================================
# FastAPI Application
# ==========================================
app = FastAPI(
    title="BlogSpace",
    description="Write, publish and discuss stories",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if IS_PROD else "/docs",
    redoc_url=None if IS_PROD else "/redoc",
    openapi_url=None if IS_PROD else "/openapi.json",
)
# Order: compression → rate-limit/metrics → security → correlation id
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware, csp_directives=CSP_DIRECTIVES)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
# CORS: strict allowlist
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Accept", "Content-Type", "X-CSRF-Token"],
    )
# Static files
app.mount("/static", CachedStaticFiles(), name="static")


# ==========================================
# Health & readiness (minimal in prod)
# ==========================================
@app.get("/healthz", tags=["system"], summary="Health check", response_model=dict)
async def health_check() -> dict:
    if IS_PROD:
        return {"status": "healthy"}
    return {"status": "healthy", "version": app.version}


@app.get("/readyz", tags=["system"], summary="Readiness check", response_model=dict)
async def readiness_check(
    session: AsyncSession = Depends(get_async_session),
) -> dict:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Readiness probe failed", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready"
        ) from exc
    if IS_PROD:
        return {"status": "ready"}
    return {"status": "ready", "database": "connected"}


# ==========================================
# Metrics (Protected with HTTP Basic Auth)
# ==========================================
security = HTTPBasic()


def verify_metrics_auth(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """Verify HTTP Basic Auth credentials for metrics endpoint."""
    if not settings.metrics_password:
        return credentials.username

    correct_username = secrets.compare_digest(
        credentials.username, settings.metrics_username
    )
    correct_password = secrets.compare_digest(
        credentials.password, settings.metrics_password
    )

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@app.get("/metrics", include_in_schema=False)
def metrics(_: str = Depends(verify_metrics_auth)):
    """
    Prometheus metrics endpoint (protected with HTTP Basic Auth).

    Set METRICS_USERNAME and METRICS_PASSWORD environment variables.
    """
    return metrics_response()


# ==========================================
# Routers
# ==========================================
app.include_router(blogs_router)
app.include_router(editor_router)
app.include_router(profiles_router)
app.include_router(auth_pages_router)
app.include_router(api_router)
# Auth
app.include_router(
    fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"]
)
app.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/auth",
    tags=["auth"],
)
app.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["users"],
)
