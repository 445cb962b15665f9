"""
Access Service

Restricts what a non-admin identity can see. Admins bypass every check and
see all projects and environments, including environments added after a
member was granted access. A non-admin with no member row on a project
sees zero environments; that is an empty result, never an error.
"""

from typing import List, Set, Tuple

from secretsync.exceptions import ProjectNotFoundError
from secretsync.models.identity import Identity
from secretsync.models.tables import Environment, Project, ProjectMember
from secretsync.store import SecretStore


def _grants_access(member: ProjectMember) -> bool:
    return bool(member.has_permission) and bool(member.environments)


class AccessService:
    """Project and environment visibility for an identity."""

    def __init__(self, store: SecretStore):
        self.store = store

    def visible_projects(self, identity: Identity) -> List[Project]:
        """Projects the identity may see."""
        if identity.is_admin:
            return self.store.list_projects()
        if not identity.user_id:
            return []

        project_ids = [
            member.project_id
            for member in self.store.members_for_user(identity.user_id)
            if _grants_access(member)
        ]
        return self.store.list_projects(project_ids=project_ids)

    def visible_environment_ids(self, project_id: str, identity: Identity) -> Set[str]:
        """Ids of the project's environments the identity may see."""
        environments = self.store.list_environments(project_id)
        if identity.is_admin:
            return {env.id for env in environments}
        if not identity.user_id:
            return set()

        member = self.store.get_project_member(project_id, identity.user_id)
        if member is None or not member.has_permission:
            return set()
        allowed = set(member.environments or [])
        return {env.id for env in environments if env.id in allowed}

    def visible_environments(self, project_id: str, identity: Identity) -> List[Environment]:
        """The project's environments the identity may see."""
        allowed = self.visible_environment_ids(project_id, identity)
        return [env for env in self.store.list_environments(project_id) if env.id in allowed]

    def can_access_environment(self, identity: Identity, environment: Environment) -> bool:
        """Check if identity may read or write an environment."""
        if identity.is_admin:
            return True
        return environment.id in self.visible_environment_ids(environment.project_id, identity)

    def can_access_project(self, identity: Identity, project_id: str) -> bool:
        """Check if identity sees at least one environment of the project."""
        if identity.is_admin:
            return True
        return bool(self.visible_environment_ids(project_id, identity))

    def get_project_view(
        self, slug: str, identity: Identity
    ) -> Tuple[Project, List[Environment]]:
        """
        Resolve a project by slug with the environments the identity can see.

        Raises:
            ProjectNotFoundError: Unknown slug

        Returns:
            (project, visible environments); the list may be empty
        """
        project = self.store.get_project_by_slug(slug)
        if project is None:
            raise ProjectNotFoundError(slug)
        return project, self.visible_environments(project.id, identity)
