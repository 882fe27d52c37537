"""Full-text search API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from blog.content.loader import FileSystemError
from blog.content.schemas import ErrorResponse
from blog.search.index import SearchIndexError
from blog.search.schemas import (
    IndexRebuildResponse,
    SearchDocumentType,
    SearchResponse,
    SuggestionsResponse,
    SyncResponse,
)

if TYPE_CHECKING:
    from blog.search.service import SearchService

logger = structlog.get_logger()

router = APIRouter(prefix="/search", tags=["search"])


def _service(request: Request) -> SearchService:
    return request.app.state.search_service


@router.get(
    "",
    response_model=SearchResponse,
    summary="Full-text search across posts and pages",
    description="BM25-ranked matches with highlighted titles and excerpts.",
)
async def search(
    request: Request,
    q: str = Query(default="", max_length=100, description="Search query string"),
    limit: int | None = Query(
        default=None, ge=1, le=100, description="Maximum results (default 20)"
    ),
    type: Literal["all", "post", "page"] = Query(
        default="all", description="Filter by content type"
    ),
) -> SearchResponse:
    """Search published posts and pages.

    Storage or index failures are logged and reported as an empty result
    set so the search box keeps working.

    Args:
        request: FastAPI request (provides access to app state).
        q: Search query string (up to 100 characters).
        limit: Maximum results (1-100).
        type: Content type filter (all, post, or page).

    Returns:
        Ranked results with the total match count.
    """
    service = _service(request)
    doc_type = SearchDocumentType(type) if type != "all" else None
    effective_limit = limit or service.default_limit

    try:
        return await service.search(q, limit=effective_limit, doc_type=doc_type)
    except (FileSystemError, SearchIndexError) as e:
        logger.error("search_failed", query=q, error=str(e))
        return SearchResponse(
            results=[], total=0, query=q, limit=effective_limit, type=type
        )


@router.get(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Search box suggestions",
)
async def suggestions(
    request: Request,
    q: str = Query(default="", max_length=100, description="Partial query"),
    limit: int = Query(default=10, ge=1, le=20, description="Maximum suggestions"),
) -> SuggestionsResponse:
    """Suggest tags and titles for a partial query, or popular tags when empty."""
    try:
        return await _service(request).get_suggestions(q, limit=limit)
    except (FileSystemError, SearchIndexError) as e:
        logger.error("search_suggestions_failed", query=q, error=str(e))
        return SuggestionsResponse(suggestions=[], query=q)


@router.post(
    "/index",
    response_model=IndexRebuildResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Rebuild the search index",
)
async def rebuild_index(request: Request) -> IndexRebuildResponse | JSONResponse:
    """Rebuild the index from every published post and page.

    Returns:
        Number of indexed documents, or 500 if the rebuild failed.
    """
    try:
        count = await _service(request).rebuild_index()
    except (FileSystemError, SearchIndexError) as e:
        logger.error("search_rebuild_failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="REBUILD_INDEX_ERROR", detail=str(e)).model_dump(),
        )

    return IndexRebuildResponse(message="Search index rebuilt", document_count=count)


@router.post(
    "/sync/{doc_type}/{entity_id}",
    response_model=SyncResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Sync one post or page into the index",
)
async def sync_entity(
    request: Request,
    doc_type: SearchDocumentType,
    entity_id: str,
) -> SyncResponse | JSONResponse:
    """Re-index a post or page after it was created, edited or unpublished.

    Args:
        request: FastAPI request.
        doc_type: "post" or "page".
        entity_id: Entity identifier.

    Returns:
        Whether the entity is indexed after the sync.
    """
    service = _service(request)
    try:
        if doc_type is SearchDocumentType.POST:
            indexed = await service.sync_post(entity_id)
        else:
            indexed = await service.sync_page(entity_id)
    except (FileSystemError, SearchIndexError) as e:
        logger.error(
            "search_sync_failed", id=entity_id, type=doc_type.value, error=str(e)
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="SYNC_INDEX_ERROR", detail=str(e)).model_dump(),
        )

    return SyncResponse(id=entity_id, type=doc_type, indexed=indexed)
