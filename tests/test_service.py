"""Search service tests: lifecycle, querying and sync."""

import asyncio
from pathlib import Path

import pytest

from blog.content.loader import FileSystemError
from blog.content.schemas import ContentStatus
from blog.content.store import FileContentStore
from blog.search.index import SearchIndexError
from blog.search.schemas import MatchPosition, SearchDocument, SearchDocumentType
from blog.search.service import SearchService
from tests.conftest import FakeContentSource, make_post, write_entry


async def test_blank_term_never_touches_index(
    service: SearchService, source: FakeContentSource
) -> None:
    """Empty and whitespace queries return nothing without building."""
    for term in ("", "   "):
        response = await service.search(term)
        assert response.results == []
        assert response.total == 0

    assert source.list_calls == 0
    assert not service.is_ready
    assert service.document_count is None


async def test_rebuild_then_search(service: SearchService) -> None:
    """Rebuilding indexes published posts and pages, and queries hit them."""
    assert await service.rebuild_index() == 3

    intro = await service.search("Intro")
    assert intro.total == 2
    assert {r.id for r in intro.results} == {"post-caching", "post-baking"}

    caching = await service.search("Caching")
    assert caching.total == 1
    result = caching.results[0]
    assert result.id == "post-caching"
    assert result.url == "/posts/post-caching"
    assert result.highlighted_title == "Intro to <mark>Caching</mark>"
    assert result.positions["title"] == [MatchPosition(start=9, length=7)]
    assert result.score > 0


async def test_first_search_builds_lazily(
    service: SearchService, source: FakeContentSource
) -> None:
    response = await service.search("baking")

    assert service.is_ready
    assert source.list_calls == 1
    assert [r.id for r in response.results] == ["post-baking"]


async def test_concurrent_first_searches_share_one_build(
    service: SearchService, source: FakeContentSource
) -> None:
    responses = await asyncio.gather(
        service.search("caching"),
        service.search("baking"),
        service.search("about"),
    )

    assert source.list_calls == 1
    assert all(r.total >= 1 for r in responses)


async def test_drafts_are_never_indexed(service: SearchService) -> None:
    assert (await service.search("Quasar")).total == 0


async def test_unfiltered_source_drafts_are_skipped(source: FakeContentSource) -> None:
    """Status is checked again even if the source ignores the filter."""
    svc = SearchService(FakeContentSource(posts=source.posts, filter_status=False))
    try:
        assert await svc.rebuild_index() == 2
        assert (await svc.search("Quasar")).total == 0
    finally:
        svc.close()


async def test_fetch_limit_truncates_rebuild(source: FakeContentSource) -> None:
    svc = SearchService(source, fetch_limit=1)
    try:
        # One post and one page make it in
        assert await svc.rebuild_index() == 2
    finally:
        svc.close()


async def test_rebuild_picks_up_new_content(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    source.posts.append(make_post("post-new", "Fermentation Basics", tags=["food"]))

    assert (await service.search("fermentation")).total == 0
    assert await service.rebuild_index() == 4
    assert (await service.search("fermentation")).total == 1


async def test_failed_rebuild_keeps_previous_index(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    source.fail = True

    with pytest.raises(FileSystemError):
        await service.rebuild_index()

    assert service.document_count == 3
    assert (await service.search("caching")).total == 1


async def test_failed_first_build_leaves_service_unbuilt(
    service: SearchService, source: FakeContentSource
) -> None:
    source.fail = True

    with pytest.raises(FileSystemError):
        await service.search("caching")

    assert not service.is_ready
    source.fail = False
    assert (await service.search("caching")).total == 1


async def test_type_filter(service: SearchService) -> None:
    """The word appears in a post and the about page; filtering keeps one."""
    everything = await service.search("systems")
    pages = await service.search("systems", doc_type=SearchDocumentType.PAGE)

    assert everything.total == 2
    assert everything.type == "all"
    assert pages.total == 1
    assert pages.type == "page"
    assert pages.results[0].id == "page-about"


async def test_limit_caps_results(service: SearchService) -> None:
    response = await service.search("intro", limit=1)
    assert len(response.results) == 1
    assert response.total == 2
    assert response.limit == 1


async def test_default_limit_applies(source: FakeContentSource) -> None:
    svc = SearchService(source, default_limit=7)
    try:
        assert (await svc.search("intro")).limit == 7
    finally:
        svc.close()


async def test_custom_highlight_tag(source: FakeContentSource) -> None:
    svc = SearchService(source, highlight_tag="strong")
    try:
        result = (await svc.search("baking")).results[0]
        assert result.highlighted_title == "Intro to <strong>Baking</strong>"
    finally:
        svc.close()


async def test_highlight_follows_matched_tokens(service: SearchService) -> None:
    """Stopwords and punctuation in the query are not highlighted."""
    response = await service.search("a caching?")

    assert [r.id for r in response.results] == ["post-caching"]
    result = response.results[0]
    assert result.highlighted_title == "Intro to <mark>Caching</mark>"
    assert result.highlighted_excerpt == "Why caches make systems fast"
    assert result.positions["excerpt"] == []


async def test_upsert_replaces_existing_document(service: SearchService) -> None:
    await service.rebuild_index()
    doc = SearchDocument(
        id="post-caching",
        title="Cache Invalidation",
        type=SearchDocumentType.POST,
        url="/posts/post-caching",
        slug="post-caching",
    )

    await service.upsert_document(doc)

    assert service.document_count == 3
    assert (await service.search("invalidation")).total == 1
    assert [r.id for r in (await service.search("intro")).results] == ["post-baking"]


async def test_upsert_ignores_remove_failure(
    service: SearchService, monkeypatch: pytest.MonkeyPatch
) -> None:
    index = await service.ensure_index()

    def broken_remove(doc_id: str) -> bool:
        raise SearchIndexError("disk on fire", "remove")

    monkeypatch.setattr(index, "remove", broken_remove)
    doc = SearchDocument(
        id="post-fresh",
        title="Fresh Entry",
        type=SearchDocumentType.POST,
        url="/posts/post-fresh",
        slug="post-fresh",
    )

    await service.upsert_document(doc)

    assert (await service.search("fresh")).total == 1


async def test_remove_document(service: SearchService) -> None:
    await service.rebuild_index()

    assert await service.remove_document("post-caching") is True
    assert (await service.search("caching")).total == 0
    # Removing again is not an error
    assert await service.remove_document("post-caching") is False
    assert await service.remove_document("never-existed") is False


async def test_sync_post_indexes_newly_published(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    source.posts.append(make_post("post-tea", "Brewing Tea"))

    assert await service.sync_post("post-tea") is True
    assert (await service.search("tea")).total == 1


async def test_sync_post_removes_unpublished(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    source.posts[0] = make_post(
        "post-caching", "Intro to Caching", status=ContentStatus.ARCHIVED
    )

    assert await service.sync_post("post-caching") is False
    assert (await service.search("caching")).total == 0


async def test_sync_post_removes_deleted(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    del source.posts[1]

    assert await service.sync_post("post-baking") is False
    assert (await service.search("baking")).total == 0


async def test_sync_page(service: SearchService, source: FakeContentSource) -> None:
    await service.rebuild_index()
    source.pages[0] = source.pages[0].model_copy(
        update={"content": "Now I mostly write about gardening."}
    )

    assert await service.sync_page("page-about") is True
    assert (await service.search("gardening")).total == 1
    assert service.document_count == 3


async def test_sync_entity_handles_id_change(
    service: SearchService, source: FakeContentSource
) -> None:
    """A file whose id changed replaces the document indexed under the old id."""
    await service.rebuild_index()
    source.posts[0] = make_post("post-caching-v2", "Intro to Caching", slug="post-caching")

    assert await service.sync_entity(SearchDocumentType.POST, "post-caching") is True

    response = await service.search("caching")
    assert [r.id for r in response.results] == ["post-caching-v2"]
    assert service.document_count == 3


async def test_sync_entity_drops_invalid_file(content_root: Path) -> None:
    """A file whose frontmatter stops validating is removed like a missing one."""
    service = SearchService(FileContentStore(content_root / "posts", content_root / "pages"))
    try:
        await service.rebuild_index()
        write_entry(content_root / "posts", "intro-to-baking", {"id": "p2", "status": "PUBLISHED"})

        assert await service.sync_entity(SearchDocumentType.POST, "intro-to-baking") is False
        assert (await service.search("baking")).total == 0
        assert service.document_count == 2
    finally:
        service.close()


async def test_sync_entity_removes_deleted_file(
    service: SearchService, source: FakeContentSource
) -> None:
    await service.rebuild_index()
    source.pages.clear()

    assert await service.sync_entity(SearchDocumentType.PAGE, "page-about") is False
    assert (await service.search("about", doc_type=SearchDocumentType.PAGE)).total == 0


async def test_remove_entity_unknown_slug(service: SearchService) -> None:
    assert await service.remove_entity(SearchDocumentType.POST, "missing") is False


async def test_search_retries_when_index_swapped(
    service: SearchService, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A query holding a closed, replaced index is retried on the live one."""
    stale = await service.ensure_index()
    await service.rebuild_index()

    async def stale_index():
        return stale

    monkeypatch.setattr(service, "ensure_index", stale_index)

    assert (await service.search("caching")).total == 1


async def test_suggestions_for_term(service: SearchService) -> None:
    """Matching tags come first, then titles of matching documents."""
    response = await service.get_suggestions("sys")

    assert response.suggestions[0] == "systems"
    assert "Intro to Caching" in response.suggestions
    assert "About Me" in response.suggestions
    assert response.query == "sys"


async def test_suggestions_without_term(service: SearchService) -> None:
    """Popular published tags are suggested; drafts do not contribute."""
    response = await service.get_suggestions(None)

    assert response.suggestions == ["food", "systems"]
    assert response.query == ""


async def test_suggestions_respect_limit(service: SearchService) -> None:
    response = await service.get_suggestions("sys", limit=1)
    assert response.suggestions == ["systems"]


async def test_concurrent_rebuilds_report_their_own_count(service: SearchService) -> None:
    counts = await asyncio.gather(service.rebuild_index(), service.rebuild_index())

    assert counts == [3, 3]
    assert service.document_count == 3
