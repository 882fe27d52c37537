"""Markdown text extraction tests."""

import pytest

from blog.search.text import extract_text


def test_extracts_mixed_markup() -> None:
    """Headings, emphasis, code and links collapse to one plain line."""
    source = "# Title\n**bold** and *italic* and `code` and [link](http://x)"
    assert extract_text(source) == "Title bold and italic and code and link"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("### Deep heading", "Deep heading"),
        ("see [the docs](https://example.com/a_b) now", "see the docs now"),
        ("line one\n\n\nline two", "line one line two"),
        ("  padded  ", "padded"),
        ("", ""),
    ],
)
def test_extract_cases(source: str, expected: str) -> None:
    """Individual syntax forms are stripped."""
    assert extract_text(source) == expected


def test_hash_inside_line_is_kept() -> None:
    """Only heading markers at line starts are removed."""
    assert extract_text("issue #42 fixed") == "issue #42 fixed"


def test_malformed_markup_is_best_effort() -> None:
    """Unbalanced markers never raise; an unclosed backtick is left in place."""
    assert extract_text("**unclosed and `tick") == "unclosed and `tick"
