import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
import uuid

import pytest

from portfolio.schemas.search import SearchQuery
from portfolio.services.search_projection import SearchProjection, build_document, extract_text

from tests.support import InMemorySearchEngine


def tiptap(*paragraphs):
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]}
            for text in paragraphs
        ],
    }


def make_project(title="Project", published=True, **kwargs):
    defaults = dict(
        id=uuid.uuid4(),
        title=title,
        description="A description",
        content=None,
        tags=[],
        tech_stack=[],
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        view_count=0,
        engagement_score=0.0,
        is_published=published,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def test_extract_text_from_tiptap_document():
    assert extract_text(tiptap("Hello", "world")) == "Hello world"


def test_extract_text_plain_and_nested_shapes():
    assert extract_text("  plain   text ") == "plain text"
    assert extract_text([{"text": "a"}, "b", None]) == "a b"
    assert extract_text({"blocks": [{"type": "text", "text": "deep"}]}) == "deep"
    assert extract_text(None) == ""
    assert extract_text(12345) == ""


def test_extract_text_never_raises_on_pathological_content():
    node: dict = {}
    current = node
    for _ in range(5000):
        current["content"] = [{}]
        current = current["content"][0]
    assert extract_text(node) == ""


def test_build_document_projects_fields():
    project = make_project(
        "Dashboard",
        content=tiptap("Realtime charts"),
        tags=["react"],
        tech_stack=["node"],
        view_count=12,
        engagement_score=3.5,
    )
    document = build_document(project, "ada")

    assert document.id == project.id
    assert document.content == "Realtime charts"
    assert document.creator_name == "ada"
    assert document.created_at == int(project.created_at.timestamp() * 1000)
    assert (document.view_count, document.engagement_score) == (12, 3.5)


def test_remove_is_idempotent():
    async def scenario():
        engine = InMemorySearchEngine()
        projection = SearchProjection(engine)
        project = make_project()
        await projection.index(project, "ada")
        await projection.index(project, "ada")
        assert len(engine.documents) == 1
        await projection.remove(project.id)
        await projection.remove(project.id)
        return engine.documents

    assert asyncio.run(scenario()) == {}


def test_unpublished_project_disappears_from_query():
    async def scenario():
        projection = SearchProjection(InMemorySearchEngine())
        project = make_project("Realtime dashboard", tags=["react"])
        await projection.index(project, "ada")
        before = await projection.query(SearchQuery(query="dashboard"))

        project.is_published = False
        await projection.remove(project.id)
        after = await projection.query(SearchQuery(query="dashboard"))
        return project.id, before, after

    project_id, before, after = asyncio.run(scenario())
    assert [r.id for r in before.results] == [project_id]
    assert after.results == []
    assert after.total_count == 0


def test_query_filters_facets_sorts_and_pages():
    async def scenario():
        projection = SearchProjection(InMemorySearchEngine())
        popular = make_project("Popular", tags=["react"], tech_stack=["node"], engagement_score=9.0)
        recent = make_project(
            "Recent", tags=["react", "ui"], created_at=datetime(2026, 2, 1, tzinfo=timezone.utc)
        )
        other = make_project("Other", tags=["vue"])
        for project in (popular, recent, other):
            await projection.index(project, "ada")

        by_tag = await projection.query(SearchQuery(tags=["react"], sort_by="popularity"))
        by_date = await projection.query(SearchQuery(sort_by="date", limit=1, page=1))
        second_page = await projection.query(SearchQuery(sort_by="date", limit=1, page=2))
        return popular.id, recent.id, by_tag, by_date, second_page

    popular_id, recent_id, by_tag, by_date, second_page = asyncio.run(scenario())
    assert [r.id for r in by_tag.results] == [popular_id, recent_id]
    assert by_tag.facets.tags == {"react": 2, "ui": 1}
    assert by_tag.facets.tech_stack == {"node": 1}
    assert [r.id for r in by_date.results] == [recent_id]
    assert by_date.total_count == 3
    assert second_page.page == 2
    assert len(second_page.results) == 1


def test_query_always_filters_on_published():
    async def scenario():
        engine = InMemorySearchEngine()
        await SearchProjection(engine).query(SearchQuery())
        return engine.requests[0]

    request = asyncio.run(scenario())
    assert request.equals == {"is_published": True}


def test_suggest_returns_titles():
    async def scenario():
        projection = SearchProjection(InMemorySearchEngine())
        await projection.index(make_project("Realtime dashboard"), "ada")
        await projection.index(make_project("Static blog"), "ada")
        return await projection.suggest("dash"), await projection.suggest("   ")

    suggestions, empty = asyncio.run(scenario())
    assert suggestions == ["Realtime dashboard"]
    assert empty == []


@pytest.mark.parametrize("bad", [{"query": "x" * 201}, {"tags": ["t"] * 11}, {"page": 0}, {"limit": 51}])
def test_search_query_bounds(bad):
    with pytest.raises(ValueError):
        SearchQuery(**bad)


def test_search_query_result_window():
    assert SearchQuery(page=200, limit=50).page == 200
    with pytest.raises(ValueError):
        SearchQuery(page=1000, limit=50)
    with pytest.raises(ValueError):
        SearchQuery(page=201, limit=50)
