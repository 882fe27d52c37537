"""Markdown to plain text extraction for search indexing."""

import re

# Order matters: the italic pass assumes bold markers are already gone.
_MARKDOWN_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^#+\s+", re.MULTILINE), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"`(.*?)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\n+"), " "),
]


def extract_text(markdown: str) -> str:
    """Strip markdown syntax, leaving text suitable for tokenized matching.

    Best effort only: nested or malformed markup can leave stray markers.

    Args:
        markdown: Raw markdown content.

    Returns:
        Plain text on a single line, possibly empty.
    """
    result = markdown or ""
    for pattern, replacement in _MARKDOWN_PATTERNS:
        result = pattern.sub(replacement, result)
    return result.strip()
