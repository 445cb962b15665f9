"""Member routes - per-project environment access for non-admin users."""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from secretsync.dashboard.deps import (
    get_access_service,
    get_identity,
    get_member_service,
    get_project_service,
    require_admin,
    require_project_access,
)
from secretsync.models.identity import Identity
from secretsync.services import AccessService, MemberService, ProjectService

router = APIRouter(tags=["members"])


class MemberCreate(BaseModel):
    email: str
    environment_ids: List[str]


class MemberUpdate(BaseModel):
    environment_ids: List[str]


@router.get("/{project_slug}")
def list_members(
    project_slug: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    members: MemberService = Depends(get_member_service),
):
    """Members of a project with the environments they can access."""
    project, _ = require_project_access(access, project_slug, identity)
    return members.list_members(project.id)


@router.post("/{project_slug}", status_code=201)
def add_member(
    project_slug: str,
    payload: MemberCreate,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
    members: MemberService = Depends(get_member_service),
):
    """Grant access; unregistered emails are invited and activate on registration."""
    project = projects.get_project_by_slug(project_slug)
    member = members.add_member(
        project.id, payload.email, payload.environment_ids, invited_by=identity.actor
    )
    return {
        "id": member.id,
        "email": member.invite_email,
        "status": member.status,
        "environments": list(member.environments),
    }


@router.put("/{project_slug}/{member_id}")
def update_member(
    project_slug: str,
    member_id: str,
    payload: MemberUpdate,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
    members: MemberService = Depends(get_member_service),
):
    """Replace the environments a member can access."""
    project = projects.get_project_by_slug(project_slug)
    member = members.update_member(
        project.id, member_id, payload.environment_ids, actor=identity.actor
    )
    return {"id": member.id, "environments": list(member.environments)}


@router.delete("/{project_slug}/{member_id}")
def remove_member(
    project_slug: str,
    member_id: str,
    identity: Identity = Depends(require_admin),
    projects: ProjectService = Depends(get_project_service),
    members: MemberService = Depends(get_member_service),
):
    """Revoke a member's access to the project."""
    project = projects.get_project_by_slug(project_slug)
    members.remove_member(project.id, member_id, actor=identity.actor)
    return {"removed": member_id}
