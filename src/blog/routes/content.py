"""Read-only content endpoints for published posts, pages and tags."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from blog.content.paths import SecurityError
from blog.content.schemas import (
    ContentStatus,
    ErrorResponse,
    Listing,
    PageDetail,
    PageListItem,
    PostDetail,
    PostListItem,
    TagSummary,
)

if TYPE_CHECKING:
    from blog.content.store import FileContentStore

logger = structlog.get_logger()

router = APIRouter(prefix="/content", tags=["content"])


def _store(request: Request) -> FileContentStore:
    return request.app.state.content_store


@router.get(
    "/posts",
    response_model=Listing[PostListItem],
    summary="List published posts",
)
async def list_posts(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
) -> Listing[PostListItem]:
    """List published posts, newest first."""
    listing = await _store(request).list_posts(
        status=ContentStatus.PUBLISHED, page=page, page_size=page_size
    )
    return Listing[PostListItem](
        items=[
            PostListItem(
                id=post.meta.id,
                slug=post.slug,
                title=post.meta.title,
                excerpt=post.meta.excerpt,
                tags=post.meta.tags,
                author=post.meta.author,
                published_at=post.meta.published_at,
                featured=post.meta.featured,
            )
            for post in listing.items
        ],
        total=listing.total,
        page=listing.page,
        page_size=listing.page_size,
    )


@router.get(
    "/posts/{slug}",
    response_model=PostDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get post by slug",
)
async def get_post(request: Request, slug: str) -> PostDetail:
    """Get a single published post by slug.

    Raises:
        HTTPException: 400 for an invalid slug, 404 if missing or unpublished.
    """
    try:
        post = await _store(request).get_post_by_slug(slug)
    except SecurityError as e:
        logger.warning("post_security_error", slug=slug, error=str(e))
        raise HTTPException(status_code=400, detail="Invalid slug") from e

    if post is None or post.meta.status != ContentStatus.PUBLISHED:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get(
    "/pages",
    response_model=Listing[PageListItem],
    summary="List published pages",
)
async def list_pages(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
) -> Listing[PageListItem]:
    """List published pages in navigation order."""
    listing = await _store(request).list_pages(
        status=ContentStatus.PUBLISHED, page=page, page_size=page_size
    )
    return Listing[PageListItem](
        items=[
            PageListItem(
                id=p.meta.id,
                slug=p.slug,
                title=p.meta.title,
                excerpt=p.meta.excerpt,
                order=p.meta.order,
            )
            for p in listing.items
        ],
        total=listing.total,
        page=listing.page,
        page_size=listing.page_size,
    )


@router.get(
    "/pages/{slug}",
    response_model=PageDetail,
    responses={404: {"model": ErrorResponse}},
    summary="Get page by slug",
)
async def get_page(request: Request, slug: str) -> PageDetail:
    """Get a single published page by slug."""
    try:
        page = await _store(request).get_page_by_slug(slug)
    except SecurityError as e:
        logger.warning("page_security_error", slug=slug, error=str(e))
        raise HTTPException(status_code=400, detail="Invalid slug") from e

    if page is None or page.meta.status != ContentStatus.PUBLISHED:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@router.get(
    "/tags",
    response_model=list[TagSummary],
    summary="List tags of published posts",
)
async def list_tags(request: Request) -> list[TagSummary]:
    """List tags with their published post counts, most used first."""
    return await _store(request).list_tags()
