"""Content repositories for posts, pages, and tags."""

from blog.content.repositories.pages import (
    get_all_pages,
    get_page_by_id,
    get_page_by_slug,
    list_pages,
)
from blog.content.repositories.posts import (
    get_all_posts,
    get_post_by_id,
    get_post_by_slug,
    list_posts,
)
from blog.content.repositories.tags import get_tag_summaries, slugify

__all__ = [
    "get_all_pages",
    "get_all_posts",
    "get_page_by_id",
    "get_page_by_slug",
    "get_post_by_id",
    "get_post_by_slug",
    "get_tag_summaries",
    "list_pages",
    "list_posts",
    "slugify",
]
