"""FTS5 index tests."""

from collections.abc import Iterator

import pytest

from blog.search.index import SearchIndex, SearchIndexError, build_match_query
from blog.search.schemas import SearchDocument, SearchDocumentType
from blog.search.stopwords import DEFAULT_STOPWORDS


def _doc(doc_id: str, title: str, **fields: object) -> SearchDocument:
    fields.setdefault("type", SearchDocumentType.POST)
    fields.setdefault("url", f"/posts/{doc_id}")
    fields.setdefault("slug", doc_id)
    return SearchDocument(id=doc_id, title=title, **fields)


@pytest.fixture
def index() -> Iterator[SearchIndex]:
    idx = SearchIndex()
    idx.initialize()
    yield idx
    idx.close()


class TestBuildMatchQuery:
    """Query sanitization."""

    def test_quotes_tokens_and_prefixes_last(self) -> None:
        assert build_match_query("hello world") == '"hello" "world"*'

    def test_strips_fts_syntax(self) -> None:
        assert build_match_query('title:"x" (NEAR) -y*') == '"title" "x" "NEAR" "y"*'

    def test_drops_stopwords(self) -> None:
        assert build_match_query("the cache", DEFAULT_STOPWORDS) == '"cache"*'

    def test_only_stopwords_is_unsearchable(self) -> None:
        assert build_match_query("the and of", DEFAULT_STOPWORDS) is None

    def test_blank_is_unsearchable(self) -> None:
        assert build_match_query('  "" ') is None

    def test_without_prefix(self) -> None:
        assert build_match_query("abc", prefix_last=False) == '"abc"'


def test_insert_and_search_title(index: SearchIndex) -> None:
    """A title word finds its document and round-trips stored fields."""
    index.insert(
        _doc(
            "1",
            "Intro to Caching",
            tags=["systems", "perf"],
            excerpt="fast",
            author="Ada",
            published_at="2024-01-01",
        )
    )

    hits, total = index.search("caching")

    assert total == 1
    doc = hits[0].document
    assert doc.id == "1"
    assert doc.tags == ["systems", "perf"]
    assert doc.excerpt == "fast"
    assert doc.author == "Ada"
    assert doc.published_at == "2024-01-01"
    assert hits[0].score > 0


@pytest.mark.parametrize(
    ("field", "value", "term"),
    [
        ("content", "the quick brown fox", "brown"),
        ("excerpt", "a summary about volcanoes", "volcanoes"),
        ("tags", ["kubernetes"], "kubernetes"),
        ("author", "Grace Hopper", "hopper"),
    ],
)
def test_every_field_is_searchable(
    index: SearchIndex, field: str, value: object, term: str
) -> None:
    index.insert(_doc("1", "Untitled", **{field: value}))
    hits, total = index.search(term)
    assert total == 1
    assert hits[0].document.id == "1"


def test_prefix_match_on_last_token(index: SearchIndex) -> None:
    """Typing a partial word still matches."""
    index.insert(_doc("1", "Distributed systems"))
    hits, _ = index.search("distrib")
    assert [h.document.id for h in hits] == ["1"]


def test_results_ordered_by_descending_score(index: SearchIndex) -> None:
    index.insert(_doc("weak", "Notes", content="python and many other unrelated words here"))
    index.insert(_doc("strong", "Python python", content="python"))

    hits, total = index.search("python")

    assert total == 2
    assert hits[0].document.id == "strong"
    assert hits[0].score >= hits[1].score


def test_limit_caps_hits_but_not_total(index: SearchIndex) -> None:
    for i in range(5):
        index.insert(_doc(str(i), f"Widget {i}"))

    hits, total = index.search("widget", limit=2)

    assert len(hits) == 2
    assert total == 5


def test_type_filter(index: SearchIndex) -> None:
    index.insert(_doc("p", "Garden post"))
    index.insert(_doc("g", "Garden page", type=SearchDocumentType.PAGE, url="/pages/g"))

    hits, total = index.search("garden", doc_type=SearchDocumentType.PAGE)

    assert total == 1
    assert hits[0].document.id == "g"


def test_remove_reports_whether_document_existed(index: SearchIndex) -> None:
    index.insert(_doc("1", "Ephemeral"))

    assert index.remove("1") is True
    assert index.remove("1") is False
    assert index.search("ephemeral") == ([], 0)


def test_find_id_by_slug(index: SearchIndex) -> None:
    index.insert(_doc("abc", "Title", slug="my-post"))
    assert index.find_id(SearchDocumentType.POST, "my-post") == "abc"
    assert index.find_id(SearchDocumentType.PAGE, "my-post") is None


def test_document_count(index: SearchIndex) -> None:
    assert index.document_count == 0
    index.insert(_doc("1", "One"))
    index.insert(_doc("2", "Two"))
    assert index.document_count == 2


def test_stopword_only_query_matches_nothing(index: SearchIndex) -> None:
    index.insert(_doc("1", "The Road"))
    assert index.search("the") == ([], 0)


def test_unicode_content(index: SearchIndex) -> None:
    index.insert(_doc("1", "Café culture", tags=["café"]))
    hits, _ = index.search("café")
    assert hits[0].document.tags == ["café"]


def test_uninitialized_index_raises() -> None:
    with pytest.raises(SearchIndexError) as exc_info:
        SearchIndex().insert(_doc("1", "x"))
    assert exc_info.value.operation == "insert"


def test_closed_index_raises(index: SearchIndex) -> None:
    index.close()
    with pytest.raises(SearchIndexError):
        index.search("anything")


def test_rejects_suspicious_tokenizer() -> None:
    with pytest.raises(ValueError):
        SearchIndex(tokenizer="porter'); DROP TABLE x; --")
