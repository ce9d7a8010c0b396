"""Similarity index: one embedding per project, stored on the project row."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portfolio.models.base import as_utc
from portfolio.models.project import Project
from portfolio.services.vector_encoder import VectorEncoder

logger = logging.getLogger(__name__)

DEFAULT_MIN_SCORE = 0.1


@dataclass
class SimilarProject:
    project: Project
    score: float


class SimilarityIndex:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], encoder: VectorEncoder):
        self.session_factory = session_factory
        self.encoder = encoder

    async def upsert(self, project_id: UUID, vector: list[float]) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(Project).where(Project.id == project_id).values(embedding=vector)
            )
            await session.commit()

    async def delete(self, project_id: UUID) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(Project).where(Project.id == project_id).values(embedding=None)
            )
            await session.commit()

    async def get(self, project_id: UUID) -> list[float] | None:
        async with self.session_factory() as session:
            result = await session.execute(select(Project.embedding).where(Project.id == project_id))
            return result.scalar_one_or_none()

    async def find_similar(
        self,
        project_id: UUID,
        k: int = 10,
        min_score: float = DEFAULT_MIN_SCORE,
        exclude_creator: UUID | None = None,
    ) -> list[SimilarProject]:
        """Nearest published projects to `project_id`, best first.

        Ties on score go to the newer project. A target without a stored
        vector yields an empty list.
        """
        target = await self.get(project_id)
        if not target:
            return []

        query = select(Project).where(
            Project.is_published == True,  # noqa: E712
            Project.id != project_id,
            Project.embedding.isnot(None),
        )
        if exclude_creator is not None:
            query = query.where(Project.creator_id != exclude_creator)

        async with self.session_factory() as session:
            candidates = (await session.execute(query)).scalars().all()

        scored = []
        for candidate in candidates:
            score = self.encoder.similarity(target, candidate.embedding)
            if score > min_score:
                scored.append(SimilarProject(project=candidate, score=score))

        scored.sort(key=lambda s: (-s.score, -as_utc(s.project.created_at).timestamp(), str(s.project.id)))
        logger.debug("Found %d similar projects for %s", len(scored), project_id)
        return scored[:k]
