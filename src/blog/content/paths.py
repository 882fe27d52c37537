"""Slug validation and safe path resolution inside content directories."""
import re
from pathlib import Path

SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")
MARKDOWN_SUFFIX = ".md"

# Tooling clutter that can sit next to content files; dotfiles are skipped too
IGNORED_NAMES: frozenset[str] = frozenset({"node_modules", "__pycache__", "Thumbs.db"})


class SecurityError(Exception):
    """Raised for a slug that could address a file outside its directory."""

    def __init__(self, message: str, slug: str) -> None:
        super().__init__(message)
        self.slug = slug


def is_valid_slug(slug: str) -> bool:
    """Whether ``slug`` is a plain file stem (letters, digits, ``-`` and ``_``)."""
    return bool(SLUG_PATTERN.match(slug))


def resolve_slug(directory: Path, slug: str) -> Path:
    """Map a post or page slug to its markdown file.

    The slug pattern already excludes separators, ``..`` and NUL bytes;
    the resolved path is still checked so a symlinked file cannot point
    outside the directory.

    Args:
        directory: The posts or pages directory.
        slug: File stem requested by the caller.

    Returns:
        Absolute path of ``<slug>.md``. The file may not exist.

    Raises:
        SecurityError: If the slug is malformed or escapes the directory.
    """
    if not is_valid_slug(slug):
        raise SecurityError(f"Invalid slug: {slug!r}", slug)

    base = directory.resolve()
    target = (base / f"{slug}{MARKDOWN_SUFFIX}").resolve()
    if target.parent != base:
        raise SecurityError(f"Slug resolves outside {base}", slug)
    return target


def is_excluded(name: str) -> bool:
    """Whether a directory entry is clutter rather than content."""
    return name.startswith(".") or name in IGNORED_NAMES
