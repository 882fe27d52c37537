"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml
from fastapi.testclient import TestClient

from blog.app import create_app
from blog.config import Settings
from blog.content.loader import FileSystemError
from blog.content.schemas import (
    ContentStatus,
    Listing,
    PageDetail,
    PageMeta,
    PostDetail,
    PostMeta,
    TagSummary,
)
from blog.search.service import SearchService


def make_post(
    post_id: str,
    title: str,
    *,
    slug: str | None = None,
    status: ContentStatus = ContentStatus.PUBLISHED,
    tags: list[str] | None = None,
    body: str = "",
    **meta: Any,
) -> PostDetail:
    """Build a post without touching the filesystem."""
    return PostDetail(
        slug=slug or post_id,
        meta=PostMeta(id=post_id, title=title, status=status, tags=tags or [], **meta),
        content=body,
    )


def make_page(
    page_id: str,
    title: str,
    *,
    slug: str | None = None,
    status: ContentStatus = ContentStatus.PUBLISHED,
    body: str = "",
    **meta: Any,
) -> PageDetail:
    """Build a page without touching the filesystem."""
    return PageDetail(
        slug=slug or page_id,
        meta=PageMeta(id=page_id, title=title, status=status, **meta),
        content=body,
    )


def write_entry(directory: Path, slug: str, meta: dict[str, Any], body: str = "") -> Path:
    """Write a markdown file with YAML frontmatter."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{slug}.md"
    frontmatter = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False)
    path.write_text(f"---\n{frontmatter}---\n{body}", encoding="utf-8")
    return path


class FakeContentSource:
    """In-memory content source that records how often it is listed."""

    def __init__(
        self,
        posts: list[PostDetail] | None = None,
        pages: list[PageDetail] | None = None,
        filter_status: bool = True,
    ) -> None:
        self.posts = list(posts or [])
        self.pages = list(pages or [])
        self.filter_status = filter_status
        self.fail = False
        self.list_calls = 0

    def _check(self) -> None:
        if self.fail:
            raise FileSystemError("storage unavailable", "fake", "EIO")

    async def list_posts(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PostDetail]:
        self.list_calls += 1
        await asyncio.sleep(0)
        self._check()
        items = [
            p for p in self.posts
            if not self.filter_status or status is None or p.meta.status == status
        ]
        return Listing[PostDetail](
            items=items[:page_size], total=len(items), page=page, page_size=page_size
        )

    async def list_pages(
        self,
        status: ContentStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Listing[PageDetail]:
        await asyncio.sleep(0)
        self._check()
        items = [
            p for p in self.pages
            if not self.filter_status or status is None or p.meta.status == status
        ]
        return Listing[PageDetail](
            items=items[:page_size], total=len(items), page=page, page_size=page_size
        )

    async def get_post(self, post_id: str) -> PostDetail | None:
        self._check()
        return next((p for p in self.posts if p.meta.id == post_id), None)

    async def get_page(self, page_id: str) -> PageDetail | None:
        self._check()
        return next((p for p in self.pages if p.meta.id == page_id), None)

    async def get_post_by_slug(self, slug: str) -> PostDetail | None:
        self._check()
        return next((p for p in self.posts if p.slug == slug), None)

    async def get_page_by_slug(self, slug: str) -> PageDetail | None:
        self._check()
        return next((p for p in self.pages if p.slug == slug), None)

    async def list_tags(self) -> list[TagSummary]:
        self._check()
        counts: dict[str, int] = {}
        for post in self.posts:
            if post.meta.status == ContentStatus.PUBLISHED:
                for tag in post.meta.tags:
                    counts[tag] = counts.get(tag, 0) + 1
        ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [TagSummary(name=n, slug=n.lower(), post_count=c) for n, c in ordered]


@pytest.fixture
def source() -> FakeContentSource:
    """Content source seeded with the caching/baking posts and an about page."""
    return FakeContentSource(
        posts=[
            make_post(
                "post-caching",
                "Intro to Caching",
                tags=["systems"],
                excerpt="Why caches make systems fast",
                body="# Caching\nKeep **hot** data close to the CPU.",
            ),
            make_post(
                "post-baking",
                "Intro to Baking",
                tags=["food"],
                excerpt="Bread from scratch",
                body="Flour, water, salt and *patience*.",
            ),
            make_post(
                "post-draft",
                "Unfinished Quasar Essay",
                status=ContentStatus.DRAFT,
                tags=["space"],
            ),
        ],
        pages=[
            make_page("page-about", "About Me", body="I write about systems and food."),
        ],
    )


@pytest.fixture
def service(source: FakeContentSource) -> Iterator[SearchService]:
    """Search service over the fake content source."""
    svc = SearchService(source)
    yield svc
    svc.close()


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """Content root on disk with two published posts, one draft and one page."""
    posts = tmp_path / "posts"
    pages = tmp_path / "pages"
    write_entry(
        posts,
        "intro-to-caching",
        {
            "id": "p1",
            "title": "Intro to Caching",
            "status": "PUBLISHED",
            "tags": ["systems", "performance"],
            "excerpt": "Why caches make systems fast",
            "author": "Ada",
            "published_at": "2024-03-01T09:00:00",
        },
        "# Caching\nKeep **hot** data close.\n",
    )
    write_entry(
        posts,
        "intro-to-baking",
        {
            "id": "p2",
            "title": "Intro to Baking",
            "status": "PUBLISHED",
            "tags": ["food"],
            "published_at": "2024-02-01T09:00:00",
        },
        "Flour and water.\n",
    )
    write_entry(
        posts,
        "secret-draft",
        {"id": "p3", "title": "Secret Quasar Draft", "status": "DRAFT", "tags": ["systems"]},
        "Not yet.\n",
    )
    write_entry(
        pages,
        "about",
        {"id": "g1", "title": "About", "status": "PUBLISHED", "order": 1},
        "Hello from the about page.\n",
    )
    return tmp_path


@pytest.fixture
def settings(content_root: Path) -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        content_root=content_root,
        watch_enabled=False,
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """Create test client with configured app."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
