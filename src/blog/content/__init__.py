"""Content module for file-based post and page access."""

from blog.content.loader import (
    ParsedContent,
    ContentValidationError,
    FileSystemError,
    read_content,
)
from blog.content.paths import SecurityError, is_excluded, resolve_slug
from blog.content.schemas import (
    ContentStatus,
    ErrorResponse,
    Listing,
    PageDetail,
    PageListItem,
    PageMeta,
    PostDetail,
    PostListItem,
    PostMeta,
    TagSummary,
)
from blog.content.store import FileContentStore

__all__ = [
    "ParsedContent",
    "ContentStatus",
    "ContentValidationError",
    "ErrorResponse",
    "FileContentStore",
    "FileSystemError",
    "Listing",
    "PageDetail",
    "PageListItem",
    "PageMeta",
    "PostDetail",
    "PostListItem",
    "PostMeta",
    "SecurityError",
    "TagSummary",
    "is_excluded",
    "read_content",
    "resolve_slug",
]
