"""
Member Service

Per-project access grants. A member row lists the environment ids a
non-admin user may see. Emails that have not registered yet get an
INVITED row that activates when the user registers.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from secretsync.cache import NULL_CACHE, Cache
from secretsync.exceptions import (
    ConflictError,
    NotFoundError,
    ProjectNotFoundError,
    SecretSyncError,
    ValidationError,
)
from secretsync.models.tables import AuditAction, MemberStatus, ProjectMember
from secretsync.services.audit_service import AuditService
from secretsync.store import SecretStore
from secretsync.utils import utcnow

logger = logging.getLogger(__name__)


class MemberService:
    """Invite, update and remove project members."""

    def __init__(
        self,
        store: SecretStore,
        audit: Optional[AuditService] = None,
        cache: Cache = NULL_CACHE,
    ):
        self.store = store
        self.audit = audit or AuditService(store)
        self.cache = cache

    def _require_project(self, project_id: str) -> None:
        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)

    def _require_member(self, project_id: str, member_id: str) -> ProjectMember:
        member = self.store.get_member(member_id)
        if member is None or member.project_id != project_id:
            raise NotFoundError(f"Member '{member_id}' not found")
        return member

    def _validate_environments(
        self, project_id: str, environment_ids: Iterable[str]
    ) -> List[str]:
        environment_ids = list(dict.fromkeys(environment_ids or []))
        known = {env.id for env in self.store.list_environments(project_id)}
        unknown = [env_id for env_id in environment_ids if env_id not in known]
        if unknown:
            raise ValidationError(
                "Environments do not belong to this project",
                context=", ".join(unknown),
            )
        return environment_ids

    def _audit(self, project_id: str, action: AuditAction, description: str, actor) -> None:
        try:
            self.audit.append(project_id, action, description, performed_by=actor)
        except SecretSyncError as e:
            logger.warning("Audit log write failed (%s): %s", action.value, e)

    def list_members(self, project_id: str) -> List[Dict[str, Any]]:
        """
        Members of a project with user details.

        Returns:
            List of dicts; email/name fall back to the invite email
        """
        self._require_project(project_id)
        members = []
        for member in self.store.list_members(project_id):
            user = member.user
            members.append(
                {
                    "id": member.id,
                    "user_id": member.user_id,
                    "email": user.email if user else member.invite_email,
                    "name": (user.name if user else None) or member.invite_email,
                    "environments": list(member.environments or []),
                    "status": member.status,
                    "has_permission": member.has_permission,
                    "invited_by": member.invited_by,
                    "invited_at": member.invited_at.isoformat() if member.invited_at else None,
                }
            )
        return members

    def add_member(
        self,
        project_id: str,
        email: str,
        environment_ids: Iterable[str],
        invited_by: Optional[str] = None,
    ) -> ProjectMember:
        """
        Grant a user (or a not yet registered email) access to environments.

        Raises:
            ValidationError: Blank email or foreign environment ids
            ConflictError: The user or email is already a member
        """
        self._require_project(project_id)
        email = (email or "").strip()
        if not email or "@" not in email:
            raise ValidationError(f"Invalid email '{email}'")
        environment_ids = self._validate_environments(project_id, environment_ids)

        user = self.store.get_user_by_email(email)
        if self.store.find_member(project_id, user.id if user else None, email) is not None:
            raise ConflictError(f"{email} is already a member of this project")

        member = ProjectMember(
            project_id=project_id,
            user_id=user.id if user else None,
            invite_email=email,
            environments=environment_ids,
            status=(MemberStatus.ACTIVE if user else MemberStatus.INVITED).value,
            has_permission=True,
            invited_by=invited_by,
            invited_at=utcnow(),
        )
        self.store.add_member(member)
        self.cache.clear_search()
        self._audit(project_id, AuditAction.MEMBER_ADD, f"Added member {email}", invited_by)
        return member

    def update_member(
        self,
        project_id: str,
        member_id: str,
        environment_ids: Iterable[str],
        actor: Optional[str] = None,
    ) -> ProjectMember:
        """Replace the environments a member can access."""
        member = self._require_member(project_id, member_id)
        member.environments = self._validate_environments(project_id, environment_ids)
        self.store.save_member(member)
        self.cache.clear_search()
        self._audit(
            project_id,
            AuditAction.MEMBER_UPDATE,
            f"Updated access for {member.invite_email}",
            actor,
        )
        return member

    def remove_member(
        self, project_id: str, member_id: str, actor: Optional[str] = None
    ) -> None:
        """Revoke a member's access to the project."""
        member = self._require_member(project_id, member_id)
        email = member.invite_email
        self.store.delete_member(member)
        self.cache.clear_search()
        self._audit(project_id, AuditAction.MEMBER_REMOVE, f"Removed member {email}", actor)
