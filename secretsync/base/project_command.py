"""
Project Command Base Class

Base class for project-specific commands.
Resolves the project and its environments for the CLI identity.
"""

from typing import List, Optional

from secretsync.exceptions import EnvironmentNotFoundError, SecretSyncError
from secretsync.models.tables import Environment, Project

from .base_command import BaseCommand


class ProjectCommand(BaseCommand):
    """
    Base class for project-specific commands.

    Provides:
    - Project validation (by slug)
    - Environment lookup restricted to what the identity can see
    """

    def __init__(self, project_slug: str, verbose: bool = False, json_output: bool = False):
        super().__init__(verbose=verbose, json_output=json_output)
        self.project_slug = project_slug
        self.project: Optional[Project] = None
        self.environments: List[Environment] = []

    def validate_project(self) -> None:
        """
        Validate that project exists and the identity can see it.

        Raises:
            SystemExit: If project unknown or not accessible
        """
        try:
            self.project, self.environments = self.access_service.get_project_view(
                self.project_slug, self.identity
            )
        except SecretSyncError as e:
            self.exit_with_error(e.message)

        if not self.environments and not self.identity.is_admin:
            self.exit_with_error(
                f"No access to any environment of project '{self.project_slug}'"
            )

    def get_environment(self, slug: str) -> Environment:
        """
        Get a visible environment by slug.

        Raises:
            EnvironmentNotFoundError: Unknown or not visible
        """
        for environment in self.environments:
            if environment.slug == slug:
                return environment
        raise EnvironmentNotFoundError(slug, [env.slug for env in self.environments])

    def run(self, **kwargs) -> None:
        """
        Run command with project validation.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.validate_project()
        except SystemExit:
            self.close()
            raise

        super().run(**kwargs)
