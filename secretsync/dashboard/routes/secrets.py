"""
Secret routes - sync status, batch commit with propagation, and
per-secret actions (mark synced, delete, history).
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from secretsync.dashboard.deps import (
    get_access_service,
    get_identity,
    get_secret_service,
    require_admin,
    require_environment,
    require_project_access,
    require_secret_access,
)
from secretsync.dashboard.routes.audit import audit_entry_to_dict
from secretsync.exceptions import ValidationError
from secretsync.models.identity import Identity
from secretsync.models.results import CommittedSecret, SyncStatus
from secretsync.models.tables import Environment
from secretsync.services import AccessService, EditSession, SecretService, broadcast
from secretsync.utils import validate_secret_key

router = APIRouter(tags=["secrets"])


# Request Models
class CommitRequest(BaseModel):
    values: Dict[str, str] = {}  # secret_id -> new value
    new: Dict[str, str] = {}  # key -> value, for keys the environment lacks
    descriptions: Dict[str, str] = {}  # key -> shared description
    propagate_to: Optional[List[str]] = None  # environment ids or slugs


class PropagateRequest(BaseModel):
    keys: List[str]
    targets: List[str]


class DescriptionUpdate(BaseModel):
    description: str = ""


def _resolve_targets(
    environments: List[Environment], source: Environment, targets: List[str]
) -> List[str]:
    """Map target ids/slugs to ids of visible environments other than the source."""
    by_ref = {}
    for env in environments:
        if env.id != source.id:
            by_ref[env.id] = env.id
            by_ref[env.slug] = env.id

    invalid = [target for target in targets if target not in by_ref]
    if invalid:
        raise ValidationError("Invalid propagation target(s)", context=", ".join(invalid))
    return list(dict.fromkeys(by_ref[target] for target in targets))


def _secret_to_dict(secret) -> dict:
    return {
        "id": secret.id,
        "key": secret.key,
        "environment_id": secret.environment_id,
        "version": secret.version,
        "updated_at": secret.updated_at.isoformat() if secret.updated_at else None,
        "last_changed_by": secret.last_changed_by,
    }


# ----------------------------------------------------------------------
# Per-secret actions
# ----------------------------------------------------------------------


@router.post("/secret/{secret_id}/sync")
def mark_synced(
    secret_id: str,
    identity: Identity = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Confirm this copy is current without changing its value (admin only)."""
    require_secret_access(secrets, access, secret_id, identity)
    secret = secrets.mark_synced(secret_id, actor=identity.actor)
    return _secret_to_dict(secret)


@router.delete("/secret/{secret_id}")
def delete_secret(
    secret_id: str,
    identity: Identity = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Delete one environment's copy (admin only). The key reads MISSING there afterwards."""
    secret = require_secret_access(secrets, access, secret_id, identity)
    key = secret.key
    secrets.delete_secret(secret_id, actor=identity.actor)
    return {"deleted": key, "secret_id": secret_id}


@router.get("/secret/{secret_id}/history")
def secret_history(
    secret_id: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Audit entries that touched this secret, newest first."""
    require_secret_access(secrets, access, secret_id, identity)
    return [audit_entry_to_dict(entry) for entry in secrets.secret_history(secret_id)]


# ----------------------------------------------------------------------
# Project views
# ----------------------------------------------------------------------


@router.get("/{project_slug}/status")
def sync_status(
    project_slug: str,
    environment: Optional[str] = None,
    status: Optional[SyncStatus] = None,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Status of every registry key in every visible environment."""
    project, environments = require_project_access(access, project_slug, identity)
    if environment:
        environments = [require_environment(environments, environment)]

    records = secrets.sync.evaluate(project.id, [env.id for env in environments])
    if status is not None:
        records = [record for record in records if record.status is status]
    return [record.to_dict() for record in records]


@router.get("/{project_slug}/summary")
def sync_summary(
    project_slug: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Per-environment synced/outdated/missing counts."""
    project, environments = require_project_access(access, project_slug, identity)
    summaries = secrets.sync.summarize(project.id, [env.id for env in environments])
    return [summary.to_dict() for summary in summaries]


@router.get("/{project_slug}/compare/{key}")
def compare_key(
    project_slug: str,
    key: str,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """One key side by side across the visible environments."""
    project, environments = require_project_access(access, project_slug, identity)
    rows = secrets.compare_key(project.id, key, [env.id for env in environments])
    return [row.to_dict() for row in rows]


@router.put("/{project_slug}/registry/{key}")
def update_description(
    project_slug: str,
    key: str,
    payload: DescriptionUpdate,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Set the shared description of a key. Sync status does not change."""
    project, _ = require_project_access(access, project_slug, identity)
    entry = secrets.registry.update_description(project.id, key, payload.description)
    return {
        "key": entry.key,
        "description": entry.description,
        "last_updated_at": entry.last_updated_at.isoformat(),
    }


# ----------------------------------------------------------------------
# Edit session
# ----------------------------------------------------------------------


@router.post("/{project_slug}/{environment_id}/commit")
def commit_changes(
    project_slug: str,
    environment_id: str,
    payload: CommitRequest,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """
    Commit a batch of edits to one environment.

    With `propagate_to`, the committed values are then saved into those
    environments too; each write there succeeds or fails on its own.
    Without it the propagation offer is skipped.
    """
    project, environments = require_project_access(access, project_slug, identity)
    environment = require_environment(environments, environment_id)
    targets = None
    if payload.propagate_to:
        targets = _resolve_targets(environments, environment, payload.propagate_to)

    session = EditSession(secrets, project.id, environment.id, identity)
    for secret_id, value in payload.values.items():
        session.stage_value(secret_id, value)
    for key, value in payload.new.items():
        session.stage_new(key, value)
    for key, description in payload.descriptions.items():
        session.stage_description(key, description)

    if not session.has_changes:
        return {"commit": None, "propagation": None}

    result = session.commit()
    propagation = None
    if result.offers_propagation:
        if targets:
            propagation = session.propagate(targets).to_dict()
        else:
            session.skip()

    return {"commit": result.to_dict(), "propagation": propagation}


@router.post("/{project_slug}/{environment_id}/propagate")
def propagate(
    project_slug: str,
    environment_id: str,
    payload: PropagateRequest,
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """Push the current values of keys in one environment to other environments."""
    project, environments = require_project_access(access, project_slug, identity)
    source = require_environment(environments, environment_id)
    targets = _resolve_targets(environments, source, payload.targets)

    items = []
    for key in dict.fromkeys(payload.keys):
        validate_secret_key(key)
        secret = secrets.store.find_secret(project.id, source.id, key)
        if secret is None:
            raise ValidationError(f"{key} does not exist in {source.slug}")
        items.append(
            CommittedSecret(
                key=key, value=secret.value, secret_id=secret.id, version=secret.version
            )
        )

    result = broadcast(secrets, project.id, items, targets, actor=identity.actor)
    return result.to_dict()


@router.get("/{project_slug}/{environment_id}/export", response_class=PlainTextResponse)
def export_environment(
    project_slug: str,
    environment_id: str,
    format: str = "env",
    identity: Identity = Depends(get_identity),
    access: AccessService = Depends(get_access_service),
    secrets: SecretService = Depends(get_secret_service),
):
    """One environment's secrets as a .env file or YAML mapping."""
    project, environments = require_project_access(access, project_slug, identity)
    environment = require_environment(environments, environment_id)
    return secrets.export_environment(project.id, environment.id, format)
