"""Search index lifecycle, querying and entity synchronization."""

import asyncio
from typing import Protocol

import structlog

from blog.content.loader import ContentValidationError
from blog.content.schemas import (
    ContentStatus,
    Listing,
    PageDetail,
    PostDetail,
    TagSummary,
)
from blog.search.documents import page_to_document, post_to_document
from blog.search.highlight import DEFAULT_TAG, apply_highlight, find_positions
from blog.search.index import (
    DEFAULT_TOKENIZER,
    IndexHit,
    SearchIndex,
    SearchIndexError,
)
from blog.search.schemas import (
    SearchDocument,
    SearchDocumentType,
    SearchResponse,
    SearchResult,
    SuggestionsResponse,
)
from blog.search.stopwords import DEFAULT_STOPWORDS

logger = structlog.get_logger()

DEFAULT_FETCH_LIMIT = 1000
DEFAULT_RESULT_LIMIT = 20


class ContentSource(Protocol):
    """Source of truth for posts and pages."""

    async def list_posts(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PostDetail]: ...

    async def list_pages(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PageDetail]: ...

    async def get_post(self, post_id: str) -> PostDetail | None: ...

    async def get_page(self, page_id: str) -> PageDetail | None: ...

    async def get_post_by_slug(self, slug: str) -> PostDetail | None: ...

    async def get_page_by_slug(self, slug: str) -> PageDetail | None: ...

    async def list_tags(self) -> list[TagSummary]: ...


def _populate(index: SearchIndex, documents: list[SearchDocument]) -> None:
    index.initialize()
    for doc in documents:
        index.insert(doc)


class SearchService:
    """Owns the process-wide search index and every operation on it.

    The index is built lazily on first use. Building, rebuilding and all
    writes are serialized by an asyncio lock, so concurrent first callers
    share one build and no caller ever sees a half-populated index: a
    rebuild populates a fresh index and swaps it in when complete.
    Queries do not take the lock.

    Attributes:
        fetch_limit: Maximum posts and pages loaded per rebuild.
        default_limit: Result count used when a query gives none.
        highlight_tag: Element wrapped around highlighted matches.
    """

    def __init__(
        self,
        source: ContentSource,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
        default_limit: int = DEFAULT_RESULT_LIMIT,
        tokenizer: str = DEFAULT_TOKENIZER,
        stopwords: frozenset[str] = DEFAULT_STOPWORDS,
        highlight_tag: str = DEFAULT_TAG,
    ) -> None:
        self.fetch_limit = fetch_limit
        self.default_limit = default_limit
        self.highlight_tag = highlight_tag
        self._source = source
        self._tokenizer = tokenizer
        self._stopwords = stopwords
        self._index: SearchIndex | None = None
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        """Whether an index has been built."""
        return self._index is not None

    @property
    def document_count(self) -> int | None:
        """Documents in the live index, or None before the first build."""
        if self._index is None:
            return None
        return self._index.document_count

    async def _build_index(self) -> SearchIndex:
        """Fetch published content and populate a new index.

        Raises:
            FileSystemError: If the content source cannot be read.
            SearchIndexError: If the index cannot be created or populated.
        """
        posts = await self._source.list_posts(
            status=ContentStatus.PUBLISHED, page=1, page_size=self.fetch_limit
        )
        pages = await self._source.list_pages(
            status=ContentStatus.PUBLISHED, page=1, page_size=self.fetch_limit
        )

        for kind, listing in (("post", posts), ("page", pages)):
            if listing.total > len(listing.items):
                logger.warning(
                    "search_rebuild_truncated",
                    entity=kind,
                    total=listing.total,
                    indexed=len(listing.items),
                    fetch_limit=self.fetch_limit,
                )

        documents = [
            post_to_document(post)
            for post in posts.items
            if post.meta.status == ContentStatus.PUBLISHED
        ]
        documents.extend(
            page_to_document(page)
            for page in pages.items
            if page.meta.status == ContentStatus.PUBLISHED
        )

        index = SearchIndex(tokenizer=self._tokenizer, stopwords=self._stopwords)
        try:
            await asyncio.to_thread(_populate, index, documents)
        except Exception:
            index.close()
            raise

        logger.info(
            "search_index_built",
            posts=len(posts.items),
            pages=len(pages.items),
            document_count=len(documents),
        )
        return index

    async def _ensure_index_locked(self) -> SearchIndex:
        if self._index is None:
            self._index = await self._build_index()
        return self._index

    async def ensure_index(self) -> SearchIndex:
        """Return the live index, building it on first use."""
        index = self._index
        if index is not None:
            return index
        async with self._lock:
            return await self._ensure_index_locked()

    async def rebuild_index(self) -> int:
        """Discard the index and rebuild it from published posts and pages.

        On failure the previous index, if any, stays live.

        Returns:
            Number of documents indexed.

        Raises:
            FileSystemError: If the content source cannot be read.
            SearchIndexError: If the new index cannot be populated.
        """
        async with self._lock:
            index = await self._build_index()
            # Read under the lock; a later rebuild closes this index
            count = index.document_count
            previous, self._index = self._index, index

        if previous is not None:
            previous.close()

        logger.info("search_index_rebuilt", document_count=count)
        return count

    async def upsert_document(self, doc: SearchDocument) -> None:
        """Replace any indexed document with the same id, then insert.

        Failure to remove the previous version is logged and ignored.

        Raises:
            SearchIndexError: If the insert fails.
        """
        async with self._lock:
            index = await self._ensure_index_locked()
            try:
                await asyncio.to_thread(index.remove, doc.id)
            except SearchIndexError as e:
                logger.warning("search_upsert_remove_failed", id=doc.id, error=str(e))
            await asyncio.to_thread(index.insert, doc)

        logger.info("search_document_upserted", id=doc.id, type=doc.type.value)

    async def remove_document(self, doc_id: str) -> bool:
        """Remove a document by id.

        Returns:
            True if a document was removed, False if it was not indexed.

        Raises:
            SearchIndexError: If the index fails.
        """
        async with self._lock:
            index = await self._ensure_index_locked()
            removed = await asyncio.to_thread(index.remove, doc_id)

        logger.info("search_document_removed", id=doc_id, removed=removed)
        return removed

    async def search(
        self,
        term: str,
        limit: int | None = None,
        doc_type: SearchDocumentType | None = None,
    ) -> SearchResponse:
        """Run a ranked full-text query and highlight the hits.

        A blank term returns an empty response without touching the index.

        Args:
            term: Free-text query.
            limit: Maximum results; defaults to ``default_limit``.
            doc_type: Restrict results to posts or pages.

        Returns:
            Results ordered by descending score with the total match count.

        Raises:
            FileSystemError: If a lazy build cannot read content.
            SearchIndexError: If the index fails.
        """
        limit = limit or self.default_limit
        type_label = doc_type.value if doc_type else "all"

        if not term or not term.strip():
            return SearchResponse(
                results=[], total=0, query=term, limit=limit, type=type_label
            )

        index = await self.ensure_index()
        try:
            hits, total = await asyncio.to_thread(index.search, term, limit, doc_type)
        except SearchIndexError:
            # The index was swapped out by a rebuild mid-query
            if self._index is None or self._index is index:
                raise
            hits, total = await asyncio.to_thread(
                self._index.search, term, limit, doc_type
            )

        return SearchResponse(
            results=[self._to_result(hit, term) for hit in hits],
            total=total,
            query=term,
            limit=limit,
            type=type_label,
        )

    def _to_result(self, hit: IndexHit, term: str) -> SearchResult:
        doc = hit.document
        title_positions = find_positions(doc.title, term, self._stopwords)
        excerpt_positions = find_positions(doc.excerpt, term, self._stopwords)
        return SearchResult(
            id=doc.id,
            title=doc.title,
            excerpt=doc.excerpt,
            type=doc.type,
            url=doc.url,
            tags=doc.tags,
            published_at=doc.published_at,
            score=hit.score,
            positions={"title": title_positions, "excerpt": excerpt_positions},
            highlighted_title=apply_highlight(
                doc.title, title_positions, self.highlight_tag
            ),
            highlighted_excerpt=apply_highlight(
                doc.excerpt, excerpt_positions, self.highlight_tag
            ),
        )

    async def sync_post(self, post_id: str) -> bool:
        """Bring one post's index entry in line with storage.

        Published posts are upserted; missing or unpublished ones removed.

        Returns:
            True if the post is indexed afterwards.
        """
        post = await self._source.get_post(post_id)
        if post is None or post.meta.status != ContentStatus.PUBLISHED:
            await self.remove_document(post_id)
            return False
        await self.upsert_document(post_to_document(post))
        return True

    async def sync_page(self, page_id: str) -> bool:
        """Bring one page's index entry in line with storage.

        Returns:
            True if the page is indexed afterwards.
        """
        page = await self._source.get_page(page_id)
        if page is None or page.meta.status != ContentStatus.PUBLISHED:
            await self.remove_document(page_id)
            return False
        await self.upsert_document(page_to_document(page))
        return True

    async def sync_entity(self, doc_type: SearchDocumentType, slug: str) -> bool:
        """Sync a post or page identified by slug, as seen by a file watcher.

        A file whose frontmatter no longer validates is treated like a
        missing one: whatever was indexed for the slug is removed.

        Returns:
            True if the entity is indexed afterwards.
        """
        try:
            doc = await self._load_published(doc_type, slug)
        except ContentValidationError as e:
            logger.warning(
                "search_entity_invalid",
                type=doc_type.value,
                slug=slug,
                errors=e.validation_error.error_count(),
            )
            doc = None

        if doc is None:
            await self.remove_entity(doc_type, slug)
            return False

        # The file may have been given a new id
        index = await self.ensure_index()
        previous_id = await asyncio.to_thread(index.find_id, doc_type, slug)
        if previous_id is not None and previous_id != doc.id:
            await self.remove_document(previous_id)

        await self.upsert_document(doc)
        return True

    async def _load_published(
        self, doc_type: SearchDocumentType, slug: str
    ) -> SearchDocument | None:
        if doc_type is SearchDocumentType.POST:
            post = await self._source.get_post_by_slug(slug)
            return post_to_document(post) if post and _is_published(post) else None
        page = await self._source.get_page_by_slug(slug)
        return page_to_document(page) if page and _is_published(page) else None

    async def remove_entity(self, doc_type: SearchDocumentType, slug: str) -> bool:
        """Remove the document indexed for a post or page slug.

        Returns:
            True if a document was removed.
        """
        index = await self.ensure_index()
        doc_id = await asyncio.to_thread(index.find_id, doc_type, slug)
        if doc_id is None:
            return False
        return await self.remove_document(doc_id)

    async def get_suggestions(self, q: str | None, limit: int = 10) -> SuggestionsResponse:
        """Suggest search terms for the search box.

        With a term: tag names containing it, then titles of matching
        documents. Without one: the most used tags.

        Args:
            q: Partial query, possibly empty.
            limit: Maximum suggestions.

        Returns:
            Deduplicated suggestions.
        """
        term = (q or "").strip()
        tags = await self._source.list_tags()

        if not term:
            return SuggestionsResponse(
                suggestions=[tag.name for tag in tags[:limit]],
                query=q or "",
            )

        lowered = term.lower()
        candidates = [tag.name for tag in tags if lowered in tag.name.lower()]
        response = await self.search(term, limit=limit)
        candidates.extend(result.title for result in response.results)

        suggestions = list(dict.fromkeys(candidates))[:limit]
        return SuggestionsResponse(suggestions=suggestions, query=q or "")

    def close(self) -> None:
        """Release the live index."""
        if self._index is not None:
            self._index.close()
            self._index = None
            logger.info("search_index_closed")


def _is_published(entity: PostDetail | PageDetail) -> bool:
    return entity.meta.status == ContentStatus.PUBLISHED
