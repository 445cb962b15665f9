"""secretsync CLI - Member commands"""

import click
from rich.table import Table

from secretsync.base import ProjectCommand
from secretsync.exceptions import NotFoundError


class MembersListCommand(ProjectCommand):
    """Project members and their environment access."""

    def execute(self) -> None:
        """Execute members:list command."""
        members = self.member_service.list_members(self.project.id)
        slugs = {env.id: env.slug for env in self.store.list_environments(self.project.id)}

        if self.json_output:
            self.output_json({"project": self.project.slug, "members": members})
            return

        self.show_header(title="Members", project=self.project.slug)
        if not members:
            self.print_dim("No members. Admins see every project without one.")
            return

        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("Email", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Environments", style="dim")
        for member in members:
            status = member["status"]
            color = "green" if status == "ACTIVE" else "yellow"
            table.add_row(
                member["email"],
                f"[{color}]{status}[/{color}]",
                ", ".join(slugs.get(env_id, env_id) for env_id in member["environments"]),
            )
        self.console.print(table)


class MembersAddCommand(ProjectCommand):
    """Grant an email access to environments."""

    def __init__(
        self,
        project_slug: str,
        email: str,
        environments: tuple,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.email = email
        self.environment_slugs = environments

    def execute(self) -> None:
        """Execute members:add command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can manage members")

        environment_ids = [self.get_environment(slug).id for slug in self.environment_slugs]
        logger = self.init_logger(self.project.slug, "members-add")
        member = self.member_service.add_member(
            self.project.id, self.email, environment_ids, invited_by=self.identity.actor
        )

        if self.json_output:
            self.output_json({"id": member.id, "email": self.email, "status": member.status})
            return
        logger.success(f"{self.email} → {', '.join(self.environment_slugs)}")
        self.print_success(f"{self.email} added ({member.status})")


class MembersRemoveCommand(ProjectCommand):
    """Revoke a member's access."""

    def __init__(
        self,
        project_slug: str,
        email: str,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.email = email

    def execute(self) -> None:
        """Execute members:remove command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can manage members")

        member = next(
            (
                m
                for m in self.member_service.list_members(self.project.id)
                if m["email"].lower() == self.email.lower()
            ),
            None,
        )
        if member is None:
            raise NotFoundError(f"{self.email} is not a member of {self.project.slug}")

        self.member_service.remove_member(
            self.project.id, member["id"], actor=self.identity.actor
        )
        if self.json_output:
            self.output_json({"removed": self.email})
            return
        self.print_success(f"{self.email} removed")


@click.command(name="members:list")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def members_list(project, verbose, json_output):
    """List project members"""
    cmd = MembersListCommand(project, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="members:add")
@click.argument("email")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option(
    "--env",
    "-e",
    "environments",
    multiple=True,
    required=True,
    help="Environment slug to grant (repeatable)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def members_add(project, email, environments, verbose, json_output):
    """
    Add a member to a project

    Unregistered emails are invited and activate on registration.

    \b
    Examples:
      secretsync members:add dev@example.com -p growth -e development -e staging
    """
    cmd = MembersAddCommand(
        project, email, environments, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="members:remove")
@click.argument("email")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def members_remove(project, email, verbose, json_output):
    """Remove a member from a project"""
    cmd = MembersRemoveCommand(project, email, verbose=verbose, json_output=json_output)
    cmd.run()
