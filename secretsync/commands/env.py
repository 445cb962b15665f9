"""secretsync CLI - Environment commands"""

import click
from rich.table import Table

from secretsync.base import ProjectCommand


class EnvListCommand(ProjectCommand):
    """Environments with their sync summary."""

    def execute(self) -> None:
        """Execute env:list command."""
        summaries = self.secret_service.sync.summarize(
            self.project.id, [env.id for env in self.environments]
        )
        by_id = {env.id: env for env in self.environments}

        if self.json_output:
            self.output_json(
                {
                    "project": self.project.slug,
                    "environments": [
                        dict(
                            summary.to_dict(),
                            slug=by_id[summary.environment_id].slug,
                            is_production=by_id[summary.environment_id].is_production,
                        )
                        for summary in summaries
                    ],
                }
            )
            return

        self.show_header(title="Environments", project=self.project.slug)

        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("Slug", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Synced", style="green", justify="right")
        table.add_column("Outdated", style="yellow", justify="right")
        table.add_column("Missing", style="red", justify="right")
        for summary in summaries:
            environment = by_id[summary.environment_id]
            name = environment.name + (" [dim](prod)[/dim]" if environment.is_production else "")
            table.add_row(
                environment.slug,
                name,
                str(summary.synced),
                str(summary.outdated),
                str(summary.missing),
            )
        self.console.print(table)


class EnvCreateCommand(ProjectCommand):
    """Add an environment to a project."""

    def __init__(
        self,
        project_slug: str,
        name: str,
        slug: str = None,
        parent: str = None,
        production: bool = False,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.name = name
        self.slug = slug
        self.parent = parent
        self.production = production

    def execute(self) -> None:
        """Execute env:create command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can create environments")

        parent_id = self.get_environment(self.parent).id if self.parent else None
        environment = self.project_service.create_environment(
            self.project.id,
            self.name,
            slug=self.slug,
            parent_id=parent_id,
            is_production=self.production,
        )

        if self.json_output:
            self.output_json({"id": environment.id, "slug": environment.slug})
            return
        self.print_success(f"Environment '{environment.slug}' created in {self.project.slug}")


class EnvDeleteCommand(ProjectCommand):
    """Delete an environment and every secret in it."""

    def __init__(
        self,
        project_slug: str,
        environment: str,
        yes: bool = False,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.environment = environment
        self.yes = yes

    def execute(self) -> None:
        """Execute env:delete command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can delete environments")

        environment = self.get_environment(self.environment)
        if not self.yes and not self.json_output:
            if not click.confirm(f"Delete '{environment.slug}' and all of its secrets?"):
                self.print_dim("Cancelled")
                return

        logger = self.init_logger(self.project.slug, "env-delete")
        if logger:
            logger.step(f"Deleting environment {environment.slug}")

        deleted = self.project_service.delete_environment(environment.id)

        if self.json_output:
            self.output_json({"environment": self.environment, "secrets_deleted": deleted})
            return
        logger.success(f"Deleted {deleted} secret(s)")
        self.print_success(f"Environment '{self.environment}' deleted")


@click.command(name="env:list")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def env_list(project, verbose, json_output):
    """
    List environments with sync counts

    \b
    Examples:
      secretsync env:list -p growth
      secretsync growth:env:list
    """
    cmd = EnvListCommand(project, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="env:create")
@click.argument("name")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--slug", help="Environment slug (derived from name by default)")
@click.option("--parent", help="Parent environment slug")
@click.option("--production", is_flag=True, help="Mark as production")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def env_create(project, name, slug, parent, production, verbose, json_output):
    """
    Create an environment

    \b
    Examples:
      secretsync env:create QA -p growth
      secretsync env:create "Preview 1" -p growth --parent staging
    """
    cmd = EnvCreateCommand(
        project,
        name,
        slug=slug,
        parent=parent,
        production=production,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()


@click.command(name="env:delete")
@click.argument("environment")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def env_delete(project, environment, yes, verbose, json_output):
    """
    Delete an environment and all of its secrets

    \b
    Examples:
      secretsync env:delete qa -p growth --yes
    """
    cmd = EnvDeleteCommand(
        project, environment, yes=yes, verbose=verbose, json_output=json_output
    )
    cmd.run()
