"""Wires services together with their store and search handles."""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.config import get_settings
from portfolio.models.base import get_session_factory, utcnow
from portfolio.services.analytics_service import AnalyticsService
from portfolio.services.follow_service import FollowService
from portfolio.services.orchestrator import ConsistencyOrchestrator
from portfolio.services.recommendation_service import RecommendationService
from portfolio.services.search_engine import OpenSearchEngine, SearchEngine
from portfolio.services.search_projection import SearchProjection
from portfolio.services.similarity_index import SimilarityIndex
from portfolio.services.trending import TrendingRanker
from portfolio.services.vector_encoder import VectorEncoder


@dataclass
class Services:
    encoder: VectorEncoder
    similarity: SimilarityIndex
    trending: TrendingRanker
    search: SearchProjection
    analytics: AnalyticsService
    recommendations: RecommendationService
    follows: FollowService
    orchestrator: ConsistencyOrchestrator


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    search_engine: SearchEngine,
    clock: Callable[[], datetime] = utcnow,
    reindex_batch_size: int | None = None,
) -> Services:
    encoder = VectorEncoder()
    similarity = SimilarityIndex(session_factory, encoder)
    trending = TrendingRanker(session_factory, clock=clock)
    search = SearchProjection(search_engine)
    analytics = AnalyticsService(session_factory, clock=clock)
    orchestrator = ConsistencyOrchestrator(
        session_factory,
        search=search,
        similarity=similarity,
        encoder=encoder,
        analytics=analytics,
        reindex_batch_size=reindex_batch_size or get_settings().reindex_batch_size,
    )
    return Services(
        encoder=encoder,
        similarity=similarity,
        trending=trending,
        search=search,
        analytics=analytics,
        recommendations=RecommendationService(session_factory, similarity, trending),
        follows=FollowService(session_factory),
        orchestrator=orchestrator,
    )


@lru_cache
def get_search_engine() -> OpenSearchEngine:
    return OpenSearchEngine.from_settings(get_settings())


@lru_cache
def get_services() -> Services:
    """Process-wide services for the web app."""
    return build_services(get_session_factory(), get_search_engine())
