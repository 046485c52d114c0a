import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.config import settings
from blogspace.constants import UNKNOWN_AUTHOR
from blogspace.database_async import get_async_session
from blogspace.schemas.blog import BlogCard, BlogDetail, CommentIn, CommentOut, LikeStatus
from blogspace.security import limiter, validate_csrf
from blogspace.services import aggregator, blog_store
from blogspace.services.errors import (
    BlogSpaceError,
    NotFoundError,
    PermissionDeniedError,
    RemoteFailureError,
    ValidationError,
)
from blogspace.services.results import LikeState
from blogspace.services.search import filter_blogs
from blogspace.session import Viewer, get_viewer, require_viewer

router = APIRouter(prefix="/api", tags=["api"])


def csrf_header(request: Request) -> None:
    validate_csrf(request, None)


def _http_error(error: BlogSpaceError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(error))


@router.get("/blogs", response_model=list[BlogCard])
@limiter.limit("60/minute")
async def list_blogs(
    request: Request,
    limit: int = Query(settings.feed_limit, ge=1, le=100),
    q: str = Query("", max_length=200),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        cards = await aggregator.load_feed(session, limit)
    except RemoteFailureError as exc:
        raise _http_error(exc) from exc
    return filter_blogs(cards, q.strip())


@router.get("/blogs/{blog_id}", response_model=BlogDetail)
@limiter.limit("60/minute")
async def get_blog(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer | None = Depends(get_viewer),
):
    try:
        detail = await aggregator.load_blog_detail(
            session, blog_id, viewer.id if viewer else None
        )
    except BlogSpaceError as exc:
        raise _http_error(exc) from exc
    if not detail.blog.published and not (viewer and viewer.owns(detail.blog.user_id)):
        raise _http_error(NotFoundError("Blog", blog_id))
    return detail


@router.post(
    "/blogs/{blog_id}/like",
    response_model=LikeStatus,
    dependencies=[Depends(csrf_header)],
)
@limiter.limit("30/minute")
async def like_blog(
    request: Request,
    blog_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer = Depends(require_viewer),
):
    """Toggle the viewer's like.

    On a store failure the pre-toggle state read by the store is returned with
    a 503 so the client can roll back its optimistic button.
    """
    result = await blog_store.toggle_like(session, blog_id, viewer.id)
    if result.ok:
        return result.value
    if isinstance(result.error, NotFoundError) or result.previous is None:
        raise _http_error(result.error)

    state = LikeState.from_status(result.previous).settle(result)
    return JSONResponse(
        LikeStatus(liked=state.liked, like_count=state.like_count).model_dump(),
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.post(
    "/blogs/{blog_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(csrf_header)],
)
@limiter.limit("20/minute")
async def add_comment(
    request: Request,
    blog_id: uuid.UUID,
    payload: CommentIn,
    session: AsyncSession = Depends(get_async_session),
    viewer: Viewer = Depends(require_viewer),
):
    try:
        result = await blog_store.post_comment(
            session, blog_id, viewer.id, payload.content
        )
    except ValidationError as exc:
        raise _http_error(exc) from exc
    if not result.ok:
        raise _http_error(result.error)

    comment = result.value
    names = await aggregator.fetch_author_names(session, [viewer.id])
    return CommentOut(
        id=comment.id,
        blog_id=comment.blog_id,
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        author_name=names.get(viewer.id, UNKNOWN_AUTHOR),
    )
