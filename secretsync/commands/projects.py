"""secretsync CLI - Project commands"""

import click
from rich.table import Table

from secretsync.base import BaseCommand


class ProjectsListCommand(BaseCommand):
    """List projects visible to the CLI identity."""

    def execute(self) -> None:
        """Execute projects:list command."""
        projects = self.access_service.visible_projects(self.identity)

        if self.json_output:
            self.output_json(
                {
                    "projects": [
                        {
                            "id": p.id,
                            "name": p.name,
                            "slug": p.slug,
                            "description": p.description or "",
                        }
                        for p in projects
                    ],
                    "total": len(projects),
                }
            )
            return

        self.show_header(title="Projects", details={"Total": len(projects)})

        if not projects:
            self.print_dim("No projects yet. Create one with: secretsync projects:create NAME")
            return

        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("Slug", style="cyan", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Environments", style="dim")
        for project in projects:
            environments = self.access_service.visible_environments(project.id, self.identity)
            table.add_row(
                project.slug, project.name, ", ".join(env.slug for env in environments)
            )
        self.console.print(table)


class ProjectsCreateCommand(BaseCommand):
    """Create a project with default environments."""

    def __init__(
        self,
        name: str,
        description: str = "",
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.name = name
        self.description = description

    def execute(self) -> None:
        """Execute projects:create command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can create projects")

        self.show_header(title="Create Project", details={"Name": self.name})
        logger = self.init_logger("global", "projects-create")

        if logger:
            logger.step("Creating project")
        project = self.project_service.create_project(self.name, self.description)
        environments = self.store.list_environments(project.id)

        if self.json_output:
            self.output_json(
                {
                    "id": project.id,
                    "slug": project.slug,
                    "environments": [env.slug for env in environments],
                }
            )
            return

        logger.success(f"Created {project.slug}")
        for environment in environments:
            logger.success(f"Environment {environment.slug}")
        self.print_success(f"Project '{project.slug}' created")


@click.command(name="projects:list")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def projects_list(verbose, json_output):
    """
    List projects

    \b
    Examples:
      secretsync projects:list
      secretsync projects:list --json
    """
    cmd = ProjectsListCommand(verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="projects:create")
@click.argument("name")
@click.option("--description", "-d", default="", help="Project description")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def projects_create(name, description, verbose, json_output):
    """
    Create a project

    Creates Development, Staging and Production environments.

    \b
    Examples:
      secretsync projects:create "Growth Platform"
    """
    cmd = ProjectsCreateCommand(
        name=name, description=description, verbose=verbose, json_output=json_output
    )
    cmd.run()
