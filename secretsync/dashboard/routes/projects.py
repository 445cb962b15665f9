"""Project routes - visible projects, creation and project detail."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from secretsync.dashboard.deps import (
    get_access_service,
    get_identity,
    get_project_service,
    project_view,
    require_admin,
)
from secretsync.models.identity import Identity
from secretsync.services import AccessService, ProjectService

router = APIRouter(tags=["projects"])


class ProjectCreate(BaseModel):
    name: str
    description: str = ""


class EnvironmentResponse(BaseModel):
    id: str
    name: str
    slug: str
    is_production: bool = False
    parent_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailResponse(ProjectResponse):
    environments: List[EnvironmentResponse] = []
    # False renders the "no access" state; it is not an error
    has_access: bool = True


@router.get("/", response_model=List[ProjectResponse])
def list_projects(
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
):
    """Projects the caller can see."""
    return access.visible_projects(identity)


@router.post("/", response_model=ProjectResponse, status_code=201)
def create_project(
    payload: ProjectCreate,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
):
    """Create a project with development, staging and production."""
    return projects.create_project(payload.name, payload.description)


@router.get("/{project_slug}", response_model=ProjectDetailResponse)
def get_project(
    project_slug: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
):
    """Project with the environments the caller can see."""
    project, environments = project_view(access, project_slug, identity)
    return ProjectDetailResponse(
        id=project.id,
        name=project.name,
        slug=project.slug,
        description=project.description,
        created_at=project.created_at,
        environments=[EnvironmentResponse.model_validate(env) for env in environments],
        has_access=identity.is_admin or bool(environments),
    )
