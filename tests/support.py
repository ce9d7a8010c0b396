"""Shared test helpers: in-memory database, fake search engines and factories."""

import asyncio
import copy
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import portfolio.models  # noqa: F401  (registers every table)
from portfolio.dependencies.services import Services, build_services
from portfolio.models.base import Base
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.follow import Follow
from portfolio.models.project import Project
from portfolio.models.user import User
from portfolio.services.search_engine import SearchHits, SearchRequest

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

T = TypeVar("T")

TEXT_FIELDS = ("title", "description", "content", "creator_name")
KEYWORD_FIELDS = ("tags", "tech_stack")


def fixed_clock() -> datetime:
    return NOW


def run_db(scenario: Callable[[async_sessionmaker[AsyncSession]], Awaitable[T]]) -> T:
    """Run `scenario(session_factory)` against a fresh in-memory SQLite database."""

    async def main():
        engine = create_async_engine(
            "sqlite+aiosqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            return await scenario(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        finally:
            await engine.dispose()

    return asyncio.run(main())


class InMemorySearchEngine:
    """Dict-backed SearchEngine with just enough query semantics for tests."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.requests: list[SearchRequest] = []

    async def upsert_document(self, doc_id: str, document: dict) -> None:
        self.documents[doc_id] = copy.deepcopy(document)

    async def delete_document(self, doc_id: str) -> None:
        self.documents.pop(doc_id, None)

    async def search(self, request: SearchRequest) -> SearchHits:
        self.requests.append(request)
        matches = [doc for doc in self.documents.values() if self._matches(doc, request)]
        for name, order in reversed(request.sort):
            matches.sort(key=lambda doc, name=name: doc[name], reverse=order == "desc")

        facets = {
            name: dict(Counter(value for doc in matches for value in doc.get(name, [])))
            for name in request.facets
        }
        page = matches[request.offset:request.offset + request.limit]
        return SearchHits(hits=copy.deepcopy(page), total=len(matches), facets=facets)

    async def ping(self) -> bool:
        return True

    @staticmethod
    def _matches(doc: dict, request: SearchRequest) -> bool:
        for name, value in request.equals.items():
            if doc.get(name) != value:
                return False
        for name, values in request.any_of.items():
            if values and not set(values) & set(doc.get(name, [])):
                return False
        if request.text:
            haystack = " ".join(
                [str(doc.get(name, "")) for name in TEXT_FIELDS]
                + [" ".join(doc.get(name, [])) for name in KEYWORD_FIELDS]
            ).lower()
            return any(word in haystack for word in request.text.lower().split())
        return True


class FailingSearchEngine:
    """SearchEngine whose every call fails as if the cluster were down."""

    def __init__(self):
        self.calls: list[str] = []

    async def _fail(self, operation: str):
        self.calls.append(operation)
        raise ConnectionError("search engine unreachable")

    async def upsert_document(self, doc_id: str, document: dict) -> None:
        await self._fail("upsert_document")

    async def delete_document(self, doc_id: str) -> None:
        await self._fail("delete_document")

    async def search(self, request: SearchRequest) -> SearchHits:
        await self._fail("search")

    async def ping(self) -> bool:
        await self._fail("ping")


@dataclass
class Harness:
    session_factory: async_sessionmaker[AsyncSession]
    engine: InMemorySearchEngine | FailingSearchEngine
    services: Services


def make_harness(session_factory, engine=None, batch_size: int = 2) -> Harness:
    engine = engine if engine is not None else InMemorySearchEngine()
    services = build_services(session_factory, engine, clock=fixed_clock, reindex_batch_size=batch_size)
    return Harness(session_factory=session_factory, engine=engine, services=services)


# --- Factories ---

_user_counter = 0


async def create_user(session_factory, name: str | None = None) -> User:
    global _user_counter
    _user_counter += 1
    name = name or f"user{_user_counter}"
    async with session_factory() as session:
        user = User(email=f"{name}.{_user_counter}@example.com", display_name=name)
        session.add(user)
        await session.commit()
    return user


async def create_project(
    session_factory,
    creator: User,
    title: str = "Untitled",
    *,
    tags: list[str] | None = None,
    tech_stack: list[str] | None = None,
    description: str | None = None,
    is_published: bool = True,
    created_at: datetime | None = None,
    embedding: list[float] | None = None,
) -> Project:
    """Insert a project row directly, bypassing the orchestrator's propagation."""
    async with session_factory() as session:
        project = Project(
            creator_id=creator.id,
            title=title,
            description=description,
            tags=tags or [],
            tech_stack=tech_stack or [],
            is_published=is_published,
            created_at=created_at or NOW - timedelta(days=1),
            embedding=embedding,
        )
        session.add(project)
        await session.commit()
    return project


async def add_events(
    session_factory,
    project_id,
    action: EngagementAction,
    count: int = 1,
    *,
    user_id=None,
    at: datetime | None = None,
) -> None:
    async with session_factory() as session:
        for i in range(count):
            session.add(EngagementEvent(
                user_id=user_id,
                project_id=project_id,
                action=action.value,
                session_id=f"session-{i}",
                created_at=at or NOW - timedelta(minutes=30),
            ))
        await session.commit()


async def add_follow(session_factory, follower: User, following: User) -> None:
    async with session_factory() as session:
        session.add(Follow(follower_id=follower.id, following_id=following.id))
        await session.commit()
