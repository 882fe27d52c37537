"""Tag aggregation over published posts."""
import re
from collections import Counter
from pathlib import Path

from blog.content.repositories.posts import get_all_posts
from blog.content.schemas import ContentStatus, TagSummary

_NON_SLUG = re.compile(r"[^\w]+", re.UNICODE)


def slugify(name: str) -> str:
    """Turn a tag name into a URL slug.

    Args:
        name: Tag display name.

    Returns:
        Lowercase slug with runs of non-word characters replaced by ``-``.
    """
    return _NON_SLUG.sub("-", name.strip().lower()).strip("-")


def get_tag_summaries(posts_dir: Path) -> list[TagSummary]:
    """Count published posts per tag.

    Tags are compared case-insensitively; the first spelling seen wins.

    Args:
        posts_dir: Directory holding post markdown files.

    Returns:
        Tags ordered by post count descending, then name.
    """
    counts: Counter[str] = Counter()
    names: dict[str, str] = {}

    for post in get_all_posts(posts_dir, ContentStatus.PUBLISHED):
        seen: set[str] = set()
        for tag in post.meta.tags:
            key = tag.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            names.setdefault(key, tag.strip())
            counts[key] += 1

    summaries = [
        TagSummary(name=names[key], slug=slugify(names[key]), post_count=count)
        for key, count in counts.items()
    ]
    summaries.sort(key=lambda t: (-t.post_count, t.name.lower()))
    return summaries
