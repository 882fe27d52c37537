"""Pydantic schemas for search documents and API responses.

Field names serialize in camelCase because the search modal consumes
them directly.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchDocumentType(str, Enum):
    """Entity type of an indexed document."""

    POST = "post"
    PAGE = "page"


class SearchDocument(_CamelModel):
    """Normalized record stored in the search index.

    Attributes:
        id: Identifier of the source post or page.
        title: Plain-text title.
        content: Plain text used for matching; never returned to callers.
        excerpt: Short plain-text summary, possibly empty.
        type: Whether the source entity is a post or a page.
        url: Canonical link to the source entity.
        tags: Tag names in stored order; empty for pages.
        published_at: ISO 8601 publication timestamp.
        author: Author display name.
        slug: Source entity slug, used to drop documents for deleted files.
    """

    id: str
    title: str
    content: str = ""
    excerpt: str = ""
    type: SearchDocumentType
    url: str
    tags: list[str] = Field(default_factory=list)
    published_at: str | None = None
    author: str | None = None
    slug: str = ""


class MatchPosition(_CamelModel):
    """Character span of a query match inside a field."""

    start: int
    length: int


class SearchResult(_CamelModel):
    """Ranked, highlight-annotated projection of a matched document.

    Attributes:
        score: Relevance score, higher is more relevant.
        positions: Match spans per field ("title", "excerpt").
        highlighted_title: Title with matches wrapped in the highlight tag.
        highlighted_excerpt: Excerpt with matches wrapped in the highlight tag.
    """

    id: str
    title: str
    excerpt: str
    type: SearchDocumentType
    url: str
    tags: list[str]
    published_at: str | None = None
    score: float
    positions: dict[str, list[MatchPosition]] | None = None
    highlighted_title: str | None = None
    highlighted_excerpt: str | None = None


class SearchResponse(_CamelModel):
    """Search response envelope.

    Attributes:
        results: Matches ordered by descending score.
        total: Number of matching documents, ignoring the limit.
        query: The caller's search term, verbatim.
        limit: Maximum number of results requested.
        type: Type filter applied, or "all".
    """

    results: list[SearchResult]
    total: int
    query: str
    limit: int = 20
    type: Literal["all", "post", "page"] = "all"


class SuggestionsResponse(_CamelModel):
    """Search-box suggestions."""

    suggestions: list[str]
    query: str


class IndexRebuildResponse(_CamelModel):
    """Outcome of a full index rebuild."""

    message: str
    document_count: int


class SyncResponse(_CamelModel):
    """Outcome of syncing one entity into the index."""

    id: str
    type: SearchDocumentType
    indexed: bool
