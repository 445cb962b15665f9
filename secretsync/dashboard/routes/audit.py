"""Audit log routes."""

from typing import Optional

from fastapi import APIRouter, Depends

from secretsync.dashboard.deps import (
    get_access_service,
    get_identity,
    get_secret_service,
    require_environment,
    require_project_access,
)
from secretsync.models.identity import Identity
from secretsync.models.tables import AuditLogEntry
from secretsync.services import AccessService, SecretService

router = APIRouter(tags=["audit"])


def audit_entry_to_dict(entry: AuditLogEntry) -> dict:
    return {
        "id": entry.id,
        "action": entry.action,
        "environment_id": entry.environment_id,
        "entity_id": entry.entity_id,
        "description": entry.description,
        "performed_by": entry.performed_by,
        "timestamp": entry.timestamp.isoformat(),
    }


@router.get("/{project_slug}")
def list_audit_logs(
    project_slug: str,
    environment: Optional[str] = None,
    limit: int = 50,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """
    Recent audit entries, newest first.

    Non-admins only see entries of their environments plus project-level
    entries (membership changes).
    """
    project, environments = require_project_access(access, project_slug, identity)
    environment_id = None
    if environment:
        environment_id = require_environment(environments, environment).id

    entries = secrets.audit.get_audit_logs(
        project.id, environment_id=environment_id, limit=limit if identity.is_admin else None
    )
    if not identity.is_admin:
        visible = {env.id for env in environments}
        entries = [
            entry
            for entry in entries
            if entry.environment_id is None or entry.environment_id in visible
        ]
    return [audit_entry_to_dict(entry) for entry in entries[:limit]]
