"""Full-text search engine client.

The projection talks to a `SearchEngine`; production uses OpenSearch.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from opensearchpy import AsyncOpenSearch, NotFoundError

logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ["title^3", "description^2", "content", "tags", "tech_stack", "creator_name"]

INDEX_MAPPINGS = {
    "properties": {
        "id": {"type": "keyword"},
        "title": {"type": "text"},
        "description": {"type": "text"},
        "content": {"type": "text"},
        "tags": {"type": "keyword"},
        "tech_stack": {"type": "keyword"},
        "creator_name": {"type": "text"},
        "created_at": {"type": "long"},
        "view_count": {"type": "integer"},
        "engagement_score": {"type": "float"},
        "is_published": {"type": "boolean"},
    }
}

MAX_FACET_VALUES = 100


@dataclass
class SearchRequest:
    text: str = ""
    equals: dict[str, Any] = field(default_factory=dict)  # field -> required value
    any_of: dict[str, list[str]] = field(default_factory=dict)  # field -> match at least one
    sort: list[tuple[str, str]] = field(default_factory=list)  # (field, "asc" | "desc"); empty = relevance
    facets: list[str] = field(default_factory=list)
    offset: int = 0
    limit: int = 20


@dataclass
class SearchHits:
    hits: list[dict]
    total: int
    facets: dict[str, dict[str, int]]


class SearchEngine(Protocol):
    async def upsert_document(self, doc_id: str, document: dict) -> None: ...

    async def delete_document(self, doc_id: str) -> None: ...

    async def search(self, request: SearchRequest) -> SearchHits: ...

    async def ping(self) -> bool: ...


def build_search_body(request: SearchRequest) -> dict:
    """Translate a SearchRequest into an OpenSearch query body."""
    filters: list[dict] = [{"term": {name: value}} for name, value in request.equals.items()]
    for name, values in request.any_of.items():
        if values:
            filters.append({"terms": {name: list(values)}})

    if request.text:
        must: list[dict] = [{
            "multi_match": {
                "query": request.text,
                "fields": SEARCHABLE_FIELDS,
                "fuzziness": "AUTO",
            }
        }]
    else:
        must = [{"match_all": {}}]

    body: dict = {
        "query": {"bool": {"must": must, "filter": filters}},
        "from": request.offset,
        "size": request.limit,
        "track_total_hits": True,
    }
    if request.sort:
        body["sort"] = [{name: {"order": order}} for name, order in request.sort]
    if request.facets:
        body["aggs"] = {
            name: {"terms": {"field": name, "size": MAX_FACET_VALUES}}
            for name in request.facets
        }
    return body


def parse_search_response(response: dict, facets: list[str]) -> SearchHits:
    hits_block = response.get("hits", {})
    total = hits_block.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)

    aggregations = response.get("aggregations", {})
    facet_counts = {
        name: {
            str(bucket["key"]): bucket["doc_count"]
            for bucket in aggregations.get(name, {}).get("buckets", [])
        }
        for name in facets
    }
    return SearchHits(
        hits=[hit["_source"] for hit in hits_block.get("hits", [])],
        total=total,
        facets=facet_counts,
    )


class OpenSearchEngine:
    def __init__(self, client: AsyncOpenSearch, index_name: str, refresh: bool = False):
        self.client = client
        self.index_name = index_name
        self.refresh = refresh

    @classmethod
    def from_settings(cls, settings) -> "OpenSearchEngine":
        auth = None
        if settings.opensearch_username:
            auth = (settings.opensearch_username, settings.opensearch_password or "")
        client = AsyncOpenSearch(
            hosts=[settings.opensearch_url],
            http_auth=auth,
            timeout=settings.opensearch_timeout,
        )
        return cls(client, settings.opensearch_index)

    async def ensure_index(self) -> None:
        """Create the index with its mappings if it does not exist yet."""
        if await self.client.indices.exists(index=self.index_name):
            return
        await self.client.indices.create(index=self.index_name, body={"mappings": INDEX_MAPPINGS})
        logger.info("Created search index %s", self.index_name)

    async def upsert_document(self, doc_id: str, document: dict) -> None:
        await self.client.index(index=self.index_name, id=doc_id, body=document, refresh=self.refresh)

    async def delete_document(self, doc_id: str) -> None:
        try:
            await self.client.delete(index=self.index_name, id=doc_id, refresh=self.refresh)
        except NotFoundError:
            logger.debug("Search document %s already absent", doc_id)

    async def search(self, request: SearchRequest) -> SearchHits:
        response = await self.client.search(index=self.index_name, body=build_search_body(request))
        return parse_search_response(response, request.facets)

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.close()
