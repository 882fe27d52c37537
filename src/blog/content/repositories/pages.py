"""Static pages content repository."""
from pathlib import Path

from blog.content.loader import FileSystemError, iter_directory, read_content
from blog.content.paths import resolve_slug
from blog.content.schemas import ContentStatus, Listing, PageDetail, PageMeta


def get_all_pages(
    pages_dir: Path,
    status: ContentStatus | None = None,
) -> list[PageDetail]:
    """Retrieve pages in navigation order (``order`` ascending, then title).

    Args:
        pages_dir: Directory holding page markdown files.
        status: Only return pages in this state. None returns every page.

    Returns:
        List of pages.

    Raises:
        FileSystemError: If the directory exists but cannot be listed.
    """
    pages = [
        PageDetail(slug=slug, meta=result.meta, content=result.content)
        for slug, result in iter_directory(pages_dir, PageMeta)
        if status is None or result.meta.status == status
    ]
    pages.sort(key=lambda p: (p.meta.order, p.meta.title.lower()))
    return pages


def list_pages(
    pages_dir: Path,
    status: ContentStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> Listing[PageDetail]:
    """Return one page of static pages."""
    pages = get_all_pages(pages_dir, status)
    start = (max(page, 1) - 1) * page_size
    return Listing[PageDetail](
        items=pages[start:start + page_size],
        total=len(pages),
        page=page,
        page_size=page_size,
    )


def get_page_by_slug(pages_dir: Path, slug: str) -> PageDetail | None:
    """Retrieve a single page by its slug.

    Raises:
        SecurityError: If slug contains path traversal attempts.
    """
    filepath = resolve_slug(pages_dir, slug)

    try:
        result = read_content(filepath, PageMeta)
    except FileSystemError as e:
        if e.code == "ENOENT":
            return None
        raise

    return PageDetail(slug=slug, meta=result.meta, content=result.content)


def get_page_by_id(pages_dir: Path, page_id: str) -> PageDetail | None:
    """Retrieve a single page by its frontmatter id, regardless of status."""
    for slug, result in iter_directory(pages_dir, PageMeta):
        if result.meta.id == page_id:
            return PageDetail(slug=slug, meta=result.meta, content=result.content)
    return None
