"""Async facade over the file-backed post and page repositories."""

import asyncio
from pathlib import Path

from blog.content.repositories import (
    get_page_by_id,
    get_page_by_slug,
    get_post_by_id,
    get_post_by_slug,
    get_tag_summaries,
    list_pages,
    list_posts,
)
from blog.content.schemas import (
    ContentStatus,
    Listing,
    PageDetail,
    PostDetail,
    TagSummary,
)


class FileContentStore:
    """Serves posts and pages from a content root on disk.

    Repository calls block on file I/O, so each one runs in a worker
    thread to keep the event loop responsive.

    Attributes:
        posts_dir: Directory holding post markdown files.
        pages_dir: Directory holding page markdown files.
    """

    def __init__(self, posts_dir: Path, pages_dir: Path) -> None:
        self.posts_dir = posts_dir
        self.pages_dir = pages_dir

    async def list_posts(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PostDetail]:
        return await asyncio.to_thread(
            list_posts, self.posts_dir, status, page, page_size
        )

    async def list_pages(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PageDetail]:
        return await asyncio.to_thread(
            list_pages, self.pages_dir, status, page, page_size
        )

    async def get_post(self, post_id: str) -> PostDetail | None:
        return await asyncio.to_thread(get_post_by_id, self.posts_dir, post_id)

    async def get_page(self, page_id: str) -> PageDetail | None:
        return await asyncio.to_thread(get_page_by_id, self.pages_dir, page_id)

    async def get_post_by_slug(self, slug: str) -> PostDetail | None:
        return await asyncio.to_thread(get_post_by_slug, self.posts_dir, slug)

    async def get_page_by_slug(self, slug: str) -> PageDetail | None:
        return await asyncio.to_thread(get_page_by_slug, self.pages_dir, slug)

    async def list_tags(self) -> list[TagSummary]:
        return await asyncio.to_thread(get_tag_summaries, self.posts_dir)
