"""Pydantic schemas for post and page content."""

from datetime import date, datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


class ContentStatus(str, Enum):
    """Publication state of a post or page."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class _EntityMeta(BaseModel):
    """Frontmatter fields shared by posts and pages."""

    id: str = Field(min_length=1, description="Stable unique identifier")
    title: str = Field(min_length=1)
    status: ContentStatus = ContentStatus.DRAFT
    excerpt: str | None = None
    author: str | None = None
    published_at: str | None = Field(
        default=None, description="ISO 8601 publication timestamp"
    )
    search_content: str | None = Field(
        default=None, description="Precomputed plain text used for search"
    )
    featured: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # YAML reads bare numeric ids as int
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("published_at", mode="before")
    @classmethod
    def _isoformat_dates(cls, value: object) -> object:
        # YAML parses unquoted timestamps into date/datetime objects
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value


class PostMeta(_EntityMeta):
    """Frontmatter schema for blog posts."""

    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_or_empty(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class PageMeta(_EntityMeta):
    """Frontmatter schema for static pages."""

    order: int = 0


class PostDetail(BaseModel):
    """Full post with markdown body."""

    slug: str
    meta: PostMeta
    content: str = Field(description="Raw markdown content")


class PageDetail(BaseModel):
    """Full page with markdown body."""

    slug: str
    meta: PageMeta
    content: str = Field(description="Raw markdown content")


class PostListItem(BaseModel):
    """Post entry for list responses."""

    id: str
    slug: str
    title: str
    excerpt: str | None = None
    tags: list[str]
    author: str | None = None
    published_at: str | None = None
    featured: bool = False


class PageListItem(BaseModel):
    """Page entry for list responses."""

    id: str
    slug: str
    title: str
    excerpt: str | None = None
    order: int = 0


class TagSummary(BaseModel):
    """Tag name with the number of published posts carrying it."""

    name: str
    slug: str
    post_count: int


class Listing(BaseModel, Generic[T]):
    """One page of a content listing.

    Attributes:
        items: Entities on this page.
        total: Number of entities matching the filter across all pages.
        page: 1-based page number.
        page_size: Maximum entities per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
