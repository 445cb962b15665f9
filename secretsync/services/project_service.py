"""
Project Management Service

Projects and their environments. A new project always starts with the
Development / Staging / Production environments.
"""

from typing import List, Optional

from secretsync.cache import NULL_CACHE, Cache
from secretsync.constants import DEFAULT_ENVIRONMENTS
from secretsync.exceptions import (
    ConflictError,
    EnvironmentNotFoundError,
    ProjectNotFoundError,
    ValidationError,
)
from secretsync.models.tables import Environment, Project
from secretsync.store import SecretStore
from secretsync.utils import slugify


class ProjectService:
    """
    Centralized project and environment management.

    Responsibilities:
    - Create projects with their default environments
    - Create and delete environments
    - Project / environment lookups by id and slug
    """

    def __init__(self, store: SecretStore, cache: Cache = NULL_CACHE):
        self.store = store
        self.cache = cache

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, name: str, description: str = "") -> Project:
        """
        Create a project with the default environments.

        Args:
            name: Display name (the slug is derived from it)
            description: Free text

        Returns:
            Created project

        Raises:
            ValidationError: Name is blank
            ConflictError: A project with the same slug exists
        """
        name = (name or "").strip()
        slug = slugify(name)
        if not slug:
            raise ValidationError("Project name is required")
        if self.store.get_project_by_slug(slug) is not None:
            raise ConflictError(f"Project '{slug}' already exists")

        project = Project(name=name, slug=slug, description=description or "")
        environments = [
            Environment(name=env_name, slug=env_slug, is_production=is_production)
            for env_name, env_slug, is_production in DEFAULT_ENVIRONMENTS
        ]
        self.store.add_project(project, environments)
        self.cache.clear_search()
        return project

    def list_projects(self) -> List[Project]:
        return self.store.list_projects()

    def get_project(self, project_id: str) -> Project:
        project = self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def get_project_by_slug(self, slug: str) -> Project:
        project = self.store.get_project_by_slug(slug)
        if project is None:
            raise ProjectNotFoundError(slug)
        return project

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    def list_environments(self, project_id: str) -> List[Environment]:
        self.get_project(project_id)
        return self.store.list_environments(project_id)

    def get_environment(self, project_id: str, environment: str) -> Environment:
        """
        Resolve an environment of a project by id or slug.

        Raises:
            EnvironmentNotFoundError: Listing the project's environment slugs
        """
        self.get_project(project_id)
        found = self.store.get_environment_by_slug(project_id, environment)
        if found is None:
            found = self.store.get_environment(environment)
        if found is None or found.project_id != project_id:
            available = [env.slug for env in self.store.list_environments(project_id)]
            raise EnvironmentNotFoundError(environment, available)
        return found

    def create_environment(
        self,
        project_id: str,
        name: str,
        slug: Optional[str] = None,
        parent_id: Optional[str] = None,
        is_production: bool = False,
    ) -> Environment:
        """
        Add an environment to a project.

        Raises:
            ValidationError: Blank name, or parent from another project
            ConflictError: Slug already used in the project
        """
        self.get_project(project_id)
        name = (name or "").strip()
        slug = slugify(slug or name)
        if not slug:
            raise ValidationError("Environment name is required")
        if self.store.get_environment_by_slug(project_id, slug) is not None:
            raise ConflictError(f"Environment '{slug}' already exists in this project")

        if parent_id:
            parent = self.store.get_environment(parent_id)
            if parent is None or parent.project_id != project_id:
                raise ValidationError(
                    "Parent environment must belong to the same project",
                    context=f"parent_id={parent_id}",
                )

        environment = Environment(
            project_id=project_id,
            name=name,
            slug=slug,
            parent_id=parent_id,
            is_production=bool(is_production),
        )
        return self.store.add_environment(environment)

    def delete_environment(self, environment_id: str) -> int:
        """
        Delete an environment and all of its secrets.

        Registry entries stay; the keys simply have one environment fewer.

        Returns:
            Number of secrets deleted
        """
        if self.store.get_environment(environment_id) is None:
            raise EnvironmentNotFoundError(environment_id)
        deleted = self.store.delete_environment(environment_id)
        self.cache.clear_search()
        return deleted
