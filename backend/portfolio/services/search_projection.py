"""Search projection — the search engine's view of published projects.

A document exists iff its project is currently published. `index` is an
upsert, so re-indexing the same project any number of times converges.
"""

import logging
from uuid import UUID

from portfolio.models.base import as_utc
from portfolio.models.project import Project
from portfolio.schemas.search import SearchDocument, SearchFacets, SearchQuery, SearchResults
from portfolio.services.search_engine import SearchEngine, SearchRequest

logger = logging.getLogger(__name__)

FACET_FIELDS = ["tags", "tech_stack"]

SORTS: dict[str, list[tuple[str, str]]] = {
    "relevance": [],
    "date": [("created_at", "desc")],
    "popularity": [("engagement_score", "desc"), ("view_count", "desc")],
}


def _collect_text(node) -> str:
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, (list, tuple)):
        return " ".join(filter(None, (_collect_text(item) for item in node)))
    if isinstance(node, dict):
        # TipTap text node
        if node.get("type") == "text" and isinstance(node.get("text"), str):
            return node["text"]
        if isinstance(node.get("content"), list):
            return _collect_text(node["content"])
        return " ".join(filter(None, (_collect_text(value) for value in node.values())))
    return ""


def extract_text(content) -> str:
    """Plain text from rich content of any shape. Never raises."""
    try:
        return " ".join(_collect_text(content).split())
    except Exception:
        # e.g. RecursionError on pathologically deep documents
        logger.warning("Failed to extract text from rich content", exc_info=True)
        return ""


def build_document(project: Project, creator_name: str) -> SearchDocument:
    return SearchDocument(
        id=project.id,
        title=project.title,
        description=project.description or "",
        content=extract_text(project.content),
        tags=list(project.tags or []),
        tech_stack=list(project.tech_stack or []),
        creator_name=creator_name,
        created_at=int(as_utc(project.created_at).timestamp() * 1000),
        view_count=project.view_count or 0,
        engagement_score=project.engagement_score or 0.0,
        is_published=bool(project.is_published),
    )


class SearchProjection:
    def __init__(self, engine: SearchEngine):
        self.engine = engine

    async def index(self, project: Project, creator_name: str) -> SearchDocument:
        document = build_document(project, creator_name)
        await self.engine.upsert_document(str(project.id), document.model_dump(mode="json"))
        logger.debug("Indexed project %s", project.id)
        return document

    async def remove(self, project_id: UUID) -> None:
        await self.engine.delete_document(str(project_id))
        logger.debug("Removed project %s from search", project_id)

    async def query(self, params: SearchQuery) -> SearchResults:
        request = SearchRequest(
            text=params.query,
            equals={"is_published": True},
            any_of={"tags": params.tags, "tech_stack": params.tech_stack},
            sort=SORTS[params.sort_by],
            facets=FACET_FIELDS,
            offset=(params.page - 1) * params.limit,
            limit=params.limit,
        )
        hits = await self.engine.search(request)
        return SearchResults(
            results=[SearchDocument.model_validate(hit) for hit in hits.hits],
            total_count=hits.total,
            facets=SearchFacets(
                tags=hits.facets.get("tags", {}),
                tech_stack=hits.facets.get("tech_stack", {}),
            ),
            page=params.page,
            limit=params.limit,
        )

    async def suggest(self, text: str, limit: int = 5) -> list[str]:
        """Titles of the best matches for a partial query."""
        if not text.strip():
            return []
        hits = await self.engine.search(SearchRequest(
            text=text.strip(),
            equals={"is_published": True},
            limit=limit,
        ))
        return [hit["title"] for hit in hits.hits][:limit]

    async def ping(self) -> bool:
        return await self.engine.ping()
