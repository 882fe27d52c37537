"""Mapping from posts and pages to search documents."""

from blog.content.schemas import PageDetail, PostDetail
from blog.search.schemas import SearchDocument, SearchDocumentType
from blog.search.text import extract_text

URL_TEMPLATES: dict[SearchDocumentType, str] = {
    SearchDocumentType.POST: "/posts/{slug}",
    SearchDocumentType.PAGE: "/pages/{slug}",
}


def build_url(doc_type: SearchDocumentType, slug: str) -> str:
    """Return the canonical URL for an entity of the given type."""
    return URL_TEMPLATES[doc_type].format(slug=slug)


def post_to_document(post: PostDetail) -> SearchDocument:
    """Map a post to its search document.

    Args:
        post: Post with frontmatter and markdown body.

    Returns:
        Search document; body text comes from ``search_content`` when the
        post carries it, otherwise it is extracted from the markdown.
    """
    meta = post.meta
    return SearchDocument(
        id=meta.id,
        title=meta.title,
        content=meta.search_content or extract_text(post.content),
        excerpt=meta.excerpt or "",
        type=SearchDocumentType.POST,
        url=build_url(SearchDocumentType.POST, post.slug),
        tags=list(meta.tags),
        published_at=meta.published_at,
        author=meta.author,
        slug=post.slug,
    )


def page_to_document(page: PageDetail) -> SearchDocument:
    """Map a static page to its search document. Pages carry no tags."""
    meta = page.meta
    return SearchDocument(
        id=meta.id,
        title=meta.title,
        content=meta.search_content or extract_text(page.content),
        excerpt=meta.excerpt or "",
        type=SearchDocumentType.PAGE,
        url=build_url(SearchDocumentType.PAGE, page.slug),
        tags=[],
        published_at=meta.published_at,
        author=meta.author,
        slug=page.slug,
    )
