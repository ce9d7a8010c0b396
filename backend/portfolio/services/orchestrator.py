"""Consistency orchestrator — project lifecycle across store, search and similarity.

Every lifecycle operation runs in two phases:

1. commit the primary write to the relational store (failures surface)
2. propagate side effects to the derived views, each step attempted
   independently; failures are logged and reported, never raised and never
   rolled back into the primary write

Derived views converge through `reindex_all`, which rebuilds them from the
projects table.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from portfolio.errors import Forbidden, NotFound, PropagationFailure, ValidationFailure
from portfolio.models.engagement_event import EngagementAction, EngagementEvent
from portfolio.models.project import Project
from portfolio.models.user import User
from portfolio.schemas.project import ProjectCreate, ProjectUpdate
from portfolio.services.analytics_service import AnalyticsService
from portfolio.services.search_projection import SearchProjection
from portfolio.services.similarity_index import SimilarityIndex
from portfolio.services.vector_encoder import VectorEncoder

logger = logging.getLogger(__name__)

DEFAULT_REINDEX_BATCH_SIZE = 10

# Side-effect step names
SEARCH_INDEX = "search_index"
SEARCH_REMOVE = "search_remove"
EMBEDDING_UPDATE = "embedding_update"
EMBEDDING_DELETE = "embedding_delete"


class Transition(str, enum.Enum):
    CREATE_DRAFT = "create_draft"
    PUBLISH = "publish"  # create published, or draft/unpublished -> published
    REPUBLISH = "republish"  # update that stays published
    UNPUBLISH = "unpublish"
    DRAFT_UPDATE = "draft_update"  # update that stays unpublished
    DELETE = "delete"


SIDE_EFFECTS: dict[Transition, tuple[str, ...]] = {
    Transition.CREATE_DRAFT: (),
    Transition.PUBLISH: (SEARCH_INDEX, EMBEDDING_UPDATE),
    Transition.REPUBLISH: (SEARCH_INDEX, EMBEDDING_UPDATE),
    Transition.UNPUBLISH: (SEARCH_REMOVE,),  # embedding retained, filtered out by publication
    Transition.DRAFT_UPDATE: (),
    Transition.DELETE: (SEARCH_REMOVE, EMBEDDING_DELETE),
}


def classify_update(was_published: bool, is_published: bool) -> Transition:
    if is_published:
        return Transition.REPUBLISH if was_published else Transition.PUBLISH
    return Transition.UNPUBLISH if was_published else Transition.DRAFT_UPDATE


@dataclass
class PropagationReport:
    operation: str
    project_id: UUID
    attempted: list[str] = field(default_factory=list)
    failures: list[PropagationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_steps(self) -> list[str]:
        return [f.step for f in self.failures]


@dataclass
class LifecycleResult:
    project: Project
    transition: Transition
    report: PropagationReport


@dataclass
class ReindexSummary:
    total: int = 0
    indexed: int = 0
    failed: int = 0
    batches: int = 0
    failed_ids: list[UUID] = field(default_factory=list)


def _validate(schema: type[BaseModel], data: BaseModel | Mapping[str, Any]) -> BaseModel:
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailure(details=e.errors(include_url=False, include_context=False, include_input=False)) from e


class ConsistencyOrchestrator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        search: SearchProjection,
        similarity: SimilarityIndex,
        encoder: VectorEncoder,
        analytics: AnalyticsService,
        reindex_batch_size: int = DEFAULT_REINDEX_BATCH_SIZE,
    ):
        self.session_factory = session_factory
        self.search = search
        self.similarity = similarity
        self.encoder = encoder
        self.analytics = analytics
        self.reindex_batch_size = reindex_batch_size

    # --- Lifecycle: public API ---

    async def create_project(self, creator_id: UUID, data: ProjectCreate | Mapping[str, Any]) -> LifecycleResult:
        project = await self.commit_create(creator_id, data)
        transition = Transition.PUBLISH if project.is_published else Transition.CREATE_DRAFT
        report = await self.propagate("create", project.id, transition)
        return LifecycleResult(project=project, transition=transition, report=report)

    async def update_project(
        self,
        project_id: UUID,
        actor_id: UUID,
        data: ProjectUpdate | Mapping[str, Any],
    ) -> LifecycleResult:
        project, was_published = await self.commit_update(project_id, actor_id, data)
        transition = classify_update(was_published, project.is_published)
        report = await self.propagate("update", project.id, transition)
        return LifecycleResult(project=project, transition=transition, report=report)

    async def delete_project(self, project_id: UUID, actor_id: UUID) -> LifecycleResult:
        project = await self.commit_delete(project_id, actor_id)
        report = await self.propagate("delete", project_id, Transition.DELETE)
        return LifecycleResult(project=project, transition=Transition.DELETE, report=report)

    async def record_engagement(
        self,
        user_id: UUID | None,
        project_id: UUID | None,
        action: EngagementAction | str,
        session_id: str,
        referrer: str | None = None,
    ) -> EngagementEvent | None:
        """Append an engagement event (primary only; engagement scores are batch)."""
        try:
            action = EngagementAction(action)
        except ValueError as e:
            raise ValidationFailure(f"Unknown engagement action: {action}") from e
        if not session_id:
            raise ValidationFailure("session_id is required")
        if project_id is None and action != EngagementAction.FOLLOW:
            raise ValidationFailure(f"{action.value} events require a project")

        return await self.analytics.track_event(user_id, project_id, action, session_id, referrer)

    # --- Lifecycle: primary phase ---

    async def commit_create(self, creator_id: UUID, data: ProjectCreate | Mapping[str, Any]) -> Project:
        payload = _validate(ProjectCreate, data)

        async with self.session_factory() as session:
            if await session.get(User, creator_id) is None:
                raise NotFound(f"User {creator_id} not found")

            project = Project(creator_id=creator_id, **payload.model_dump())
            session.add(project)
            await session.commit()

        logger.info("Created project %s (published=%s)", project.id, project.is_published)
        return project

    async def commit_update(
        self,
        project_id: UUID,
        actor_id: UUID,
        data: ProjectUpdate | Mapping[str, Any],
    ) -> tuple[Project, bool]:
        payload = _validate(ProjectUpdate, data)
        changes = payload.model_dump(exclude_unset=True)

        async with self.session_factory() as session:
            project = await self._get_owned(session, project_id, actor_id)
            was_published = project.is_published

            for key, value in changes.items():
                if key in ("title", "tags", "tech_stack", "is_published") and value is None:
                    raise ValidationFailure(f"{key} cannot be null")
                setattr(project, key, value)
            await session.commit()

        logger.info("Updated project %s (published %s -> %s)", project_id, was_published, project.is_published)
        return project, was_published

    async def commit_delete(self, project_id: UUID, actor_id: UUID) -> Project:
        async with self.session_factory() as session:
            project = await self._get_owned(session, project_id, actor_id)
            await session.delete(project)
            await session.commit()

        logger.info("Deleted project %s", project_id)
        return project

    @staticmethod
    async def _get_owned(session: AsyncSession, project_id: UUID, actor_id: UUID) -> Project:
        project = await session.get(Project, project_id)
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        if project.creator_id != actor_id:
            raise Forbidden("Only the creator can modify this project")
        return project

    # --- Lifecycle: side-effect phase ---

    async def propagate(self, operation: str, project_id: UUID, transition: Transition) -> PropagationReport:
        """Attempt every side effect of `transition`; collect, log, never raise."""
        report = PropagationReport(operation=operation, project_id=project_id)
        for step in SIDE_EFFECTS[transition]:
            report.attempted.append(step)
            try:
                await self._run_step(step, project_id)
            except Exception as e:
                failure = PropagationFailure(step, project_id, e)
                report.failures.append(failure)
                logger.error(
                    "Side effect %s failed for project %s during %s: %s",
                    step, project_id, operation, e,
                    exc_info=True,
                    extra={"operation": operation, "project_id": str(project_id), "step": step},
                )
        return report

    async def _run_step(self, step: str, project_id: UUID) -> None:
        if step == SEARCH_INDEX:
            await self._index_current(project_id)
        elif step == EMBEDDING_UPDATE:
            await self._embed_current(project_id)
        elif step == SEARCH_REMOVE:
            await self.search.remove(project_id)
        elif step == EMBEDDING_DELETE:
            await self.similarity.delete(project_id)
        else:
            raise ValueError(f"Unknown side effect: {step}")

    async def _load(self, project_id: UUID) -> Project:
        """Re-read the primary record; projections derive from current state."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Project).options(selectinload(Project.creator)).where(Project.id == project_id)
            )
            project = result.scalar_one_or_none()
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        return project

    async def _index_current(self, project_id: UUID) -> None:
        project = await self._load(project_id)
        if not project.is_published:
            # Unpublished since the primary write; converge instead of indexing
            await self.search.remove(project_id)
            return
        await self.search.index(project, project.creator.search_name)

    async def _embed_current(self, project_id: UUID) -> None:
        project = await self._load(project_id)
        await self.similarity.upsert(project_id, self.encoder.encode(project))

    # --- Reconciliation ---

    async def reindex_all(self, batch_size: int | None = None) -> ReindexSummary:
        """Rebuild search documents and embeddings for every published project.

        Walks the projects table in id order, one batch at a time. A failure on
        one project is logged and counted; the run continues.
        """
        batch_size = batch_size or self.reindex_batch_size
        summary = ReindexSummary()
        last_id: UUID | None = None
        logger.info("Starting bulk project reindex (batch_size=%d)", batch_size)

        while True:
            query = select(Project.id).where(Project.is_published == True)  # noqa: E712
            if last_id is not None:
                query = query.where(Project.id > last_id)
            query = query.order_by(Project.id).limit(batch_size)

            async with self.session_factory() as session:
                batch = (await session.execute(query)).scalars().all()
            if not batch:
                break

            summary.batches += 1
            for project_id in batch:
                summary.total += 1
                report = await self.propagate("reindex", project_id, Transition.REPUBLISH)
                if report.ok:
                    summary.indexed += 1
                else:
                    summary.failed += 1
                    summary.failed_ids.append(project_id)
            last_id = batch[-1]
            logger.info("Reindexed batch %d (%d projects so far)", summary.batches, summary.total)

        logger.info(
            "Bulk reindex complete: %d projects, %d indexed, %d failed",
            summary.total, summary.indexed, summary.failed,
        )
        return summary

    # --- Health ---

    async def health_check(self) -> dict:
        """Check the database and search engine independently. Advisory only."""
        checks = {}

        try:
            async with self.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            checks["database"] = {"ok": True}
        except Exception as e:
            logger.error("Database health check failed: %s", e)
            checks["database"] = {"ok": False, "message": str(e)}

        try:
            if not await self.search.ping():
                raise ConnectionError("search engine did not answer ping")
            checks["search"] = {"ok": True}
        except Exception as e:
            logger.error("Search health check failed: %s", e)
            checks["search"] = {"ok": False, "message": str(e)}

        healthy = sum(1 for check in checks.values() if check["ok"])
        if healthy == len(checks):
            status = "healthy"
        elif healthy == 0:
            status = "unhealthy"
        else:
            status = "degraded"

        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
        }
