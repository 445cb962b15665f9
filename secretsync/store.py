"""
Secret Store

SQLAlchemy-backed storage collaborator. Every read and write the services
need goes through here, so backend failures surface in one shape:
SQLAlchemyError becomes StorageError (after a rollback), and unique
constraint violations become ConflictError.

Each mutating method commits on its own. The services rely on this to
keep a committed value even when a later registry or audit write fails.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from secretsync.exceptions import ConflictError, StorageError
from secretsync.models.tables import (
    AuditLogEntry,
    Environment,
    MemberStatus,
    Project,
    ProjectMember,
    RegistryEntry,
    Secret,
    User,
)


class SecretStore:
    """
    Database-backed store for projects, environments, secrets, registry,
    members, users and audit logs.
    """

    def __init__(self, db: Session):
        """
        Initialize store.

        Args:
            db: SQLAlchemy session (owned by the caller)
        """
        self.db = db

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _reading(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Storage read failed: {operation}", context=str(e)) from e

    @contextmanager
    def _writing(self, operation: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"Conflicting write: {operation}", context=str(e.orig)
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Storage write failed: {operation}", context=str(e)) from e

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, project: Project, environments: List[Environment]) -> Project:
        """Insert a project together with its initial environments."""
        with self._writing(f"create project {project.slug}"):
            self.db.add(project)
            self.db.flush()
            for environment in environments:
                environment.project_id = project.id
                self.db.add(environment)
        return project

    def list_projects(self, project_ids: Optional[List[str]] = None) -> List[Project]:
        """List non-deleted projects, optionally restricted to ids."""
        with self._reading("list projects"):
            query = self.db.query(Project).filter(Project.deleted_at.is_(None))
            if project_ids is not None:
                if not project_ids:
                    return []
                query = query.filter(Project.id.in_(project_ids))
            return query.order_by(Project.name).all()

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._reading("get project"):
            return (
                self.db.query(Project)
                .filter(Project.id == project_id, Project.deleted_at.is_(None))
                .first()
            )

    def get_project_by_slug(self, slug: str) -> Optional[Project]:
        with self._reading("get project by slug"):
            return (
                self.db.query(Project)
                .filter(Project.slug == slug, Project.deleted_at.is_(None))
                .first()
            )

    def search_projects(self, query: str, limit: int) -> List[Project]:
        """Case-insensitive substring match on project name or slug."""
        pattern = f"%{query.lower()}%"
        with self._reading("search projects"):
            return (
                self.db.query(Project)
                .filter(
                    Project.deleted_at.is_(None),
                    (func.lower(Project.name).like(pattern))
                    | (func.lower(Project.slug).like(pattern)),
                )
                .order_by(Project.name)
                .limit(limit)
                .all()
            )

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    def list_environments(self, project_id: str) -> List[Environment]:
        with self._reading("list environments"):
            return (
                self.db.query(Environment)
                .filter(Environment.project_id == project_id)
                .order_by(Environment.created_at, Environment.name)
                .all()
            )

    def get_environment(self, environment_id: str) -> Optional[Environment]:
        with self._reading("get environment"):
            return (
                self.db.query(Environment)
                .filter(Environment.id == environment_id)
                .first()
            )

    def get_environment_by_slug(self, project_id: str, slug: str) -> Optional[Environment]:
        with self._reading("get environment by slug"):
            return (
                self.db.query(Environment)
                .filter(Environment.project_id == project_id, Environment.slug == slug)
                .first()
            )

    def add_environment(self, environment: Environment) -> Environment:
        with self._writing(f"create environment {environment.slug}"):
            self.db.add(environment)
        return environment

    def delete_environment(self, environment_id: str) -> int:
        """
        Delete an environment and every secret scoped to it.

        Child environments are re-parented to the deleted environment's parent.

        Returns:
            Number of secrets deleted
        """
        with self._writing("delete environment"):
            environment = (
                self.db.query(Environment)
                .filter(Environment.id == environment_id)
                .first()
            )
            if environment is None:
                return 0

            deleted = (
                self.db.query(Secret)
                .filter(Secret.environment_id == environment_id)
                .delete(synchronize_session=False)
            )
            self.db.query(Environment).filter(
                Environment.parent_id == environment_id
            ).update({"parent_id": environment.parent_id}, synchronize_session=False)
            self.db.delete(environment)
        self.db.expire_all()
        return deleted

    # ------------------------------------------------------------------
    # Secrets
    # ------------------------------------------------------------------

    def get_secrets(
        self, project_id: str, environment_id: Optional[str] = None
    ) -> List[Secret]:
        """Get secrets for a project, optionally for one environment."""
        with self._reading("get secrets"):
            query = self.db.query(Secret).filter(Secret.project_id == project_id)
            if environment_id:
                query = query.filter(Secret.environment_id == environment_id)
            return query.order_by(Secret.key).all()

    def get_secret(self, secret_id: str) -> Optional[Secret]:
        with self._reading("get secret"):
            return self.db.query(Secret).filter(Secret.id == secret_id).first()

    def find_secret(
        self, project_id: str, environment_id: str, key: str
    ) -> Optional[Secret]:
        with self._reading("find secret"):
            return (
                self.db.query(Secret)
                .filter(
                    Secret.project_id == project_id,
                    Secret.environment_id == environment_id,
                    Secret.key == key,
                )
                .first()
            )

    def get_secrets_for_key(self, project_id: str, key: str) -> List[Secret]:
        with self._reading("get secrets for key"):
            return (
                self.db.query(Secret)
                .filter(Secret.project_id == project_id, Secret.key == key)
                .all()
            )

    def search_secret_keys(
        self, query: str, project_ids: Optional[List[str]] = None
    ) -> List[Secret]:
        """Secrets whose key contains query (case-insensitive)."""
        pattern = f"%{query.lower()}%"
        with self._reading("search secrets"):
            q = (
                self.db.query(Secret)
                .join(Project, Project.id == Secret.project_id)
                .filter(
                    Project.deleted_at.is_(None),
                    func.lower(Secret.key).like(pattern),
                )
            )
            if project_ids is not None:
                if not project_ids:
                    return []
                q = q.filter(Secret.project_id.in_(project_ids))
            return q.order_by(Secret.key).all()

    def upsert_secret(
        self,
        project_id: str,
        environment_id: str,
        key: str,
        value: str,
        actor: str,
        at: datetime,
    ) -> Secret:
        """
        Write a value for (project, environment, key).

        Existing rows get the new value, updated_at=at, version+1 and
        last_changed_by=actor. New rows start at version 1.
        """
        with self._writing(f"upsert secret {key}"):
            secret = (
                self.db.query(Secret)
                .filter(
                    Secret.project_id == project_id,
                    Secret.environment_id == environment_id,
                    Secret.key == key,
                )
                .first()
            )
            if secret:
                secret.value = value
                secret.updated_at = at
                secret.version = (secret.version or 0) + 1
                secret.last_changed_by = actor
            else:
                secret = Secret(
                    project_id=project_id,
                    environment_id=environment_id,
                    key=key,
                    value=value,
                    version=1,
                    updated_at=at,
                    created_at=at,
                    last_changed_by=actor,
                )
                self.db.add(secret)
        return secret

    def delete_secret(self, secret_id: str) -> bool:
        """Delete one environment's copy. Returns False if it did not exist."""
        with self._writing("delete secret"):
            deleted = (
                self.db.query(Secret)
                .filter(Secret.id == secret_id)
                .delete(synchronize_session="fetch")
            )
        return deleted > 0

    def touch_secret(self, secret_id: str, at: datetime) -> Optional[Secret]:
        """Set updated_at without touching value or version (mark-synced)."""
        with self._writing("touch secret"):
            secret = self.db.query(Secret).filter(Secret.id == secret_id).first()
            if secret is None:
                return None
            secret.updated_at = at
        return secret

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get_registry(self, project_id: str) -> Dict[str, RegistryEntry]:
        """Registry entries of a project keyed by secret key."""
        with self._reading("get registry"):
            entries = (
                self.db.query(RegistryEntry)
                .filter(RegistryEntry.project_id == project_id)
                .order_by(RegistryEntry.key)
                .all()
            )
        return {entry.key: entry for entry in entries}

    def get_registry_entry(self, project_id: str, key: str) -> Optional[RegistryEntry]:
        with self._reading("get registry entry"):
            return (
                self.db.query(RegistryEntry)
                .filter(RegistryEntry.project_id == project_id, RegistryEntry.key == key)
                .first()
            )

    def upsert_registry_entry(
        self,
        project_id: str,
        key: str,
        description: Optional[str] = None,
        last_updated_at: Optional[datetime] = None,
    ) -> RegistryEntry:
        """
        Create or update a registry entry.

        Only the fields passed are changed on an existing entry. A new entry
        gets description "" and last_updated_at when they are not passed.
        """
        with self._writing(f"upsert registry entry {key}"):
            entry = (
                self.db.query(RegistryEntry)
                .filter(RegistryEntry.project_id == project_id, RegistryEntry.key == key)
                .first()
            )
            if entry is None:
                entry = RegistryEntry(
                    project_id=project_id,
                    key=key,
                    description=description if description is not None else "",
                )
                if last_updated_at is not None:
                    entry.last_updated_at = last_updated_at
                self.db.add(entry)
            else:
                if description is not None:
                    entry.description = description
                if last_updated_at is not None:
                    entry.last_updated_at = last_updated_at
        return entry

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    def append_audit_log(self, entry: AuditLogEntry) -> AuditLogEntry:
        with self._writing(f"append audit log {entry.action}"):
            self.db.add(entry)
        return entry

    def get_audit_logs(
        self,
        project_id: str,
        environment_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditLogEntry]:
        """Audit entries newest first."""
        with self._reading("get audit logs"):
            query = self.db.query(AuditLogEntry).filter(
                AuditLogEntry.project_id == project_id
            )
            if environment_id:
                query = query.filter(AuditLogEntry.environment_id == environment_id)
            if entity_id:
                query = query.filter(AuditLogEntry.entity_id == entity_id)
            query = query.order_by(AuditLogEntry.timestamp.desc())
            if limit:
                query = query.limit(limit)
            return query.all()

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def get_project_member(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        with self._reading("get project member"):
            return (
                self.db.query(ProjectMember)
                .filter(
                    ProjectMember.project_id == project_id,
                    ProjectMember.user_id == user_id,
                )
                .first()
            )

    def get_member(self, member_id: str) -> Optional[ProjectMember]:
        with self._reading("get member"):
            return (
                self.db.query(ProjectMember).filter(ProjectMember.id == member_id).first()
            )

    def find_member(
        self, project_id: str, user_id: Optional[str], email: str
    ) -> Optional[ProjectMember]:
        """Existing row for this project matching the user id or invite email."""
        with self._reading("find member"):
            condition = func.lower(ProjectMember.invite_email) == email.lower()
            if user_id:
                condition = condition | (ProjectMember.user_id == user_id)
            return (
                self.db.query(ProjectMember)
                .filter(ProjectMember.project_id == project_id, condition)
                .first()
            )

    def list_members(self, project_id: str) -> List[ProjectMember]:
        with self._reading("list members"):
            return (
                self.db.query(ProjectMember)
                .filter(ProjectMember.project_id == project_id)
                .order_by(ProjectMember.invited_at)
                .all()
            )

    def members_for_user(self, user_id: str) -> List[ProjectMember]:
        with self._reading("members for user"):
            return (
                self.db.query(ProjectMember)
                .filter(ProjectMember.user_id == user_id)
                .all()
            )

    def pending_invites(self, email: str) -> List[ProjectMember]:
        with self._reading("pending invites"):
            return (
                self.db.query(ProjectMember)
                .filter(
                    ProjectMember.user_id.is_(None),
                    func.lower(ProjectMember.invite_email) == email.lower(),
                )
                .all()
            )

    def add_member(self, member: ProjectMember) -> ProjectMember:
        with self._writing(f"add member {member.invite_email}"):
            self.db.add(member)
        return member

    def save_member(self, member: ProjectMember) -> ProjectMember:
        """Persist changes made to a loaded member row."""
        with self._writing("update member"):
            self.db.add(member)
        return member

    def delete_member(self, member: ProjectMember) -> None:
        with self._writing("remove member"):
            self.db.delete(member)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[User]:
        with self._reading("get user"):
            return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._reading("get user by email"):
            return (
                self.db.query(User)
                .filter(func.lower(User.email) == email.lower())
                .first()
            )

    def add_user(self, user: User, activate: List[ProjectMember]) -> User:
        """Insert a user and attach pending invites in the same transaction."""
        with self._writing(f"add user {user.email}"):
            self.db.add(user)
            self.db.flush()
            for member in activate:
                member.user_id = user.id
                member.status = MemberStatus.ACTIVE.value
                self.db.add(member)
        return user
