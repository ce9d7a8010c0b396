"""Search endpoints backed by the search projection."""

import logging

from fastapi import APIRouter, Depends, Query
from opensearchpy.exceptions import OpenSearchException
from pydantic import ValidationError

from portfolio.api.envelope import ok
from portfolio.dependencies.services import Services, get_services
from portfolio.errors import DependencyUnavailable, ValidationFailure
from portfolio.schemas.search import SearchQuery

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

SEARCH_ERRORS = (OpenSearchException, ConnectionError, OSError)


@router.get("")
async def search_projects(
    query: str = Query(""),
    tags: list[str] = Query(default=[]),
    tech_stack: list[str] = Query(default=[]),
    sort_by: str = Query("relevance"),
    page: int = Query(1),
    limit: int = Query(20),
    services: Services = Depends(get_services),
):
    """Full-text search over published projects with tag and tech facets."""
    try:
        params = SearchQuery(
            query=query,
            tags=tags,
            tech_stack=tech_stack,
            sort_by=sort_by,
            page=page,
            limit=limit,
        )
    except ValidationError as e:
        raise ValidationFailure(details=e.errors(include_url=False, include_context=False, include_input=False)) from e

    try:
        results = await services.search.query(params)
    except SEARCH_ERRORS as e:
        logger.error("Search failed: %s", e)
        raise DependencyUnavailable("Search is temporarily unavailable") from e
    return ok(results)


@router.get("/suggestions")
async def search_suggestions(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(5, ge=1, le=10),
    services: Services = Depends(get_services),
):
    try:
        suggestions = await services.search.suggest(q, limit)
    except SEARCH_ERRORS as e:
        logger.error("Search suggestions failed: %s", e)
        raise DependencyUnavailable("Search is temporarily unavailable") from e
    return ok(suggestions)
