"""Case-insensitive match highlighting for search results."""

import re

from blog.search.index import query_tokens
from blog.search.schemas import MatchPosition
from blog.search.stopwords import DEFAULT_STOPWORDS

DEFAULT_TAG = "mark"


def _query_words(term: str, stopwords: frozenset[str]) -> list[str]:
    # Longest first so "cache" does not shadow "caching" when both match
    words = {w.lower() for w in query_tokens(term, stopwords)}
    return sorted(words, key=len, reverse=True)


def find_positions(
    text: str,
    term: str,
    stopwords: frozenset[str] = DEFAULT_STOPWORDS,
) -> list[MatchPosition]:
    """Locate every occurrence of the query words in a text.

    The term is tokenized the way the index tokenizes queries, so only
    words that took part in matching are marked. Each is matched
    independently and case-insensitively. Overlapping or touching spans
    are merged.

    Args:
        text: Field value to scan.
        term: Raw query term.
        stopwords: Words the index dropped from the query.

    Returns:
        Spans sorted by start offset. Empty when nothing matches.
    """
    words = _query_words(term, stopwords)
    if not text or not words:
        return []

    pattern = re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)
    spans: list[tuple[int, int]] = []
    for match in pattern.finditer(text):
        start, end = match.span()
        if spans and start <= spans[-1][1]:
            spans[-1] = (spans[-1][0], max(spans[-1][1], end))
        else:
            spans.append((start, end))

    return [MatchPosition(start=s, length=e - s) for s, e in spans]


def apply_highlight(
    text: str,
    positions: list[MatchPosition],
    tag: str = DEFAULT_TAG,
) -> str:
    """Wrap the given spans of a text in ``<tag>...</tag>``.

    Args:
        text: Original field value.
        positions: Non-overlapping spans sorted by start offset.
        tag: Element name used for the wrapper.

    Returns:
        Marked-up text; the input unchanged when there are no positions.
    """
    if not positions:
        return text

    parts: list[str] = []
    cursor = 0
    for pos in positions:
        end = pos.start + pos.length
        parts.append(text[cursor:pos.start])
        parts.append(f"<{tag}>{text[pos.start:end]}</{tag}>")
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


def highlight(
    text: str,
    term: str,
    tag: str = DEFAULT_TAG,
    stopwords: frozenset[str] = DEFAULT_STOPWORDS,
) -> str:
    """Highlight query matches in a text.

    Args:
        text: Field value to mark up.
        term: Raw query term.
        tag: Element name used for the wrapper.
        stopwords: Words the index dropped from the query.

    Returns:
        Text with each match wrapped in ``tag``.
    """
    return apply_highlight(text, find_positions(text, term, stopwords), tag)
