"""Full-text search over published posts and pages."""

from blog.search.documents import page_to_document, post_to_document
from blog.search.highlight import find_positions, highlight
from blog.search.index import SearchIndex, SearchIndexError
from blog.search.schemas import (
    MatchPosition,
    SearchDocument,
    SearchDocumentType,
    SearchResponse,
    SearchResult,
    SuggestionsResponse,
)
from blog.search.service import ContentSource, SearchService
from blog.search.subscriber import run_search_subscriber
from blog.search.text import extract_text

__all__ = [
    "ContentSource",
    "MatchPosition",
    "SearchDocument",
    "SearchDocumentType",
    "SearchIndex",
    "SearchIndexError",
    "SearchResponse",
    "SearchResult",
    "SearchService",
    "SuggestionsResponse",
    "extract_text",
    "find_positions",
    "highlight",
    "page_to_document",
    "post_to_document",
    "run_search_subscriber",
]
