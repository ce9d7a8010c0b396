"""Project lifecycle endpoints.

Responses reflect the primary write only; search and similarity propagation
failures are logged by the orchestrator and never change the response.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from portfolio.api.envelope import ok
from portfolio.dependencies.identity import require_user_id
from portfolio.dependencies.services import Services, get_services
from portfolio.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", status_code=201)
async def create_project(
    payload: ProjectCreate,
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    """Create a project; published projects become searchable and similar-able."""
    result = await services.orchestrator.create_project(user_id, payload)
    return ok(ProjectRead.model_validate(result.project))


@router.patch("/{project_id}")
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    result = await services.orchestrator.update_project(project_id, user_id, payload)
    return ok(ProjectRead.model_validate(result.project))


@router.delete("/{project_id}")
async def delete_project(
    project_id: UUID,
    user_id: UUID = Depends(require_user_id),
    services: Services = Depends(get_services),
):
    await services.orchestrator.delete_project(project_id, user_id)
    return ok({"id": project_id, "deleted": True})
