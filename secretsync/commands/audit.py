"""secretsync CLI - Audit log command"""

import click
from rich.table import Table

from secretsync.base import ProjectCommand


class AuditListCommand(ProjectCommand):
    """Recent audit entries of a project."""

    def __init__(
        self,
        project_slug: str,
        environment: str = None,
        limit: int = 50,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.environment = environment
        self.limit = limit

    def execute(self) -> None:
        """Execute audit:list command."""
        environment_id = self.get_environment(self.environment).id if self.environment else None
        entries = self.secret_service.audit.get_audit_logs(
            self.project.id, environment_id=environment_id, limit=self.limit
        )
        names = {env.id: env.slug for env in self.store.list_environments(self.project.id)}

        if self.json_output:
            self.output_json(
                {
                    "project": self.project.slug,
                    "entries": [
                        {
                            "action": entry.action,
                            "environment": names.get(entry.environment_id),
                            "description": entry.description,
                            "performed_by": entry.performed_by,
                            "timestamp": entry.timestamp.isoformat(),
                        }
                        for entry in entries
                    ],
                }
            )
            return

        self.show_header(
            title="Audit Log",
            project=self.project.slug,
            environment=self.environment,
            details={"Limit": self.limit},
        )
        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("When", style="dim", no_wrap=True)
        table.add_column("Action", style="cyan")
        table.add_column("Env")
        table.add_column("Description")
        table.add_column("By", style="dim")
        for entry in entries:
            table.add_row(
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.action,
                names.get(entry.environment_id, "-"),
                entry.description,
                entry.performed_by or "",
            )
        self.console.print(table)


@click.command(name="audit:list")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--env", "-e", "environment", help="Only this environment")
@click.option("--limit", "-n", default=50, show_default=True, help="Max entries")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def audit_list(project, environment, limit, verbose, json_output):
    """Show the audit log of a project"""
    cmd = AuditListCommand(
        project,
        environment=environment,
        limit=limit,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
