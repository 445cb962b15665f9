"""Environment routes - list with sync summary, create and delete."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from secretsync.dashboard.deps import (
    get_access_service,
    get_identity,
    get_project_service,
    get_secret_service,
    project_view,
    require_admin,
)
from secretsync.dashboard.routes.projects import EnvironmentResponse
from secretsync.models.identity import Identity
from secretsync.services import AccessService, ProjectService, SecretService

router = APIRouter(tags=["environments"])


class EnvironmentCreate(BaseModel):
    name: str
    slug: Optional[str] = None
    parent_id: Optional[str] = None
    is_production: bool = False


@router.get("/{project_slug}")
def list_environments(
    project_slug: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Visible environments with their synced/outdated/missing counts."""
    project, environments = project_view(access, project_slug, identity)
    if not environments:
        return []

    summaries = {
        summary.environment_id: summary
        for summary in secrets.sync.summarize(project.id, [env.id for env in environments])
    }
    return [
        {
            **EnvironmentResponse.model_validate(env).model_dump(),
            "summary": summaries[env.id].to_dict(),
        }
        for env in environments
    ]


@router.post("/{project_slug}", response_model=EnvironmentResponse, status_code=201)
def create_environment(
    project_slug: str,
    payload: EnvironmentCreate,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
):
    """Add an environment (e.g. a preview of staging) to a project."""
    project = projects.get_project_by_slug(project_slug)
    return projects.create_environment(
        project.id,
        payload.name,
        slug=payload.slug,
        parent_id=payload.parent_id,
        is_production=payload.is_production,
    )


@router.delete("/{project_slug}/{environment_id}")
def delete_environment(
    project_slug: str,
    environment_id: str,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
):
    """Delete an environment and its secrets. Registry keys stay."""
    project = projects.get_project_by_slug(project_slug)
    environment = projects.get_environment(project.id, environment_id)
    deleted = projects.delete_environment(environment.id)
    return {"deleted": environment.slug, "secrets_deleted": deleted}
