"""Posts content repository."""
from pathlib import Path

from blog.content.loader import FileSystemError, iter_directory, read_content
from blog.content.paths import resolve_slug
from blog.content.schemas import ContentStatus, Listing, PostDetail, PostMeta


def get_all_posts(
    posts_dir: Path,
    status: ContentStatus | None = None,
) -> list[PostDetail]:
    """Retrieve posts sorted by publication date descending, then mtime descending.

    Skips files with invalid frontmatter, logging errors but continuing
    to process remaining files.

    Args:
        posts_dir: Directory holding post markdown files.
        status: Only return posts in this state. None returns every post.

    Returns:
        List of posts, newest first. Posts without a publication date sort last.

    Raises:
        FileSystemError: If the directory exists but cannot be listed.
    """
    entries: list[tuple[PostDetail, float]] = []

    for slug, result in iter_directory(posts_dir, PostMeta):
        if status is not None and result.meta.status != status:
            continue
        entries.append(
            (PostDetail(slug=slug, meta=result.meta, content=result.content), result.mtime)
        )

    entries.sort(key=lambda x: (x[0].meta.published_at or "", x[1]), reverse=True)
    return [entry for entry, _ in entries]


def list_posts(
    posts_dir: Path,
    status: ContentStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> Listing[PostDetail]:
    """Return one page of posts.

    Args:
        posts_dir: Directory holding post markdown files.
        status: Optional status filter.
        page: 1-based page number.
        page_size: Maximum posts on the page.

    Returns:
        Listing with the requested page and the total match count.
    """
    posts = get_all_posts(posts_dir, status)
    start = (max(page, 1) - 1) * page_size
    return Listing[PostDetail](
        items=posts[start:start + page_size],
        total=len(posts),
        page=page,
        page_size=page_size,
    )


def get_post_by_slug(posts_dir: Path, slug: str) -> PostDetail | None:
    """Retrieve a single post by its slug.

    Args:
        posts_dir: Directory holding post markdown files.
        slug: The post filename without extension.

    Returns:
        PostDetail if found, None otherwise.

    Raises:
        SecurityError: If slug contains path traversal attempts.
    """
    filepath = resolve_slug(posts_dir, slug)

    try:
        result = read_content(filepath, PostMeta)
    except FileSystemError as e:
        if e.code == "ENOENT":
            return None
        raise

    return PostDetail(slug=slug, meta=result.meta, content=result.content)


def get_post_by_id(posts_dir: Path, post_id: str) -> PostDetail | None:
    """Retrieve a single post by its frontmatter id, regardless of status.

    Args:
        posts_dir: Directory holding post markdown files.
        post_id: The post identifier.

    Returns:
        PostDetail if found, None otherwise.
    """
    for slug, result in iter_directory(posts_dir, PostMeta):
        if result.meta.id == post_id:
            return PostDetail(slug=slug, meta=result.meta, content=result.content)
    return None
