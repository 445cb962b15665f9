"""secretsync CLI - Secret commands"""

from pathlib import Path
from typing import List, Tuple

import click
from rich.table import Table

from secretsync.base import ProjectCommand
from secretsync.constants import EXPORT_FORMATS
from secretsync.exceptions import CommitError, NotFoundError, ValidationError
from secretsync.models.results import SyncStatus
from secretsync.services import EditSession
from secretsync.ui_components import status_markup
from secretsync.utils import mask_value


def parse_pairs(pairs: Tuple[str, ...]) -> List[Tuple[str, str]]:
    """
    Parse KEY=VALUE arguments.

    Raises:
        ValidationError: An argument has no '='
    """
    parsed = []
    for pair in pairs:
        if "=" not in pair:
            raise ValidationError(f"Invalid format '{pair}'", context="Use: KEY=VALUE")
        key, value = pair.split("=", 1)
        parsed.append((key.strip(), value))
    return parsed


class SecretsListCommand(ProjectCommand):
    """Sync status of every registry key."""

    def __init__(
        self,
        project_slug: str,
        environment: str = None,
        status: str = None,
        no_mask: bool = False,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.environment = environment
        self.status = status
        self.no_mask = no_mask

    def execute(self) -> None:
        """Execute secrets:list command."""
        environments = (
            [self.get_environment(self.environment)] if self.environment else self.environments
        )
        records = self.secret_service.sync.evaluate(
            self.project.id, [env.id for env in environments]
        )
        if self.status:
            records = [r for r in records if r.status is SyncStatus(self.status)]

        if self.json_output:
            rows = []
            for record in records:
                row = record.to_dict()
                if not self.no_mask:
                    row["value"] = mask_value(record.key, record.value)
                rows.append(row)
            self.output_json({"project": self.project.slug, "secrets": rows})
            return

        self.show_header(
            title="Secrets",
            project=self.project.slug,
            environment=self.environment,
            details={"Masked": "No" if self.no_mask else "Yes"},
        )

        if not records:
            self.print_dim("No secrets")
            return

        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Environment")
        table.add_column("Status")
        table.add_column("Value", style="green")
        table.add_column("Description", style="dim")
        for record in records:
            value = record.value if self.no_mask else mask_value(record.key, record.value)
            table.add_row(
                record.key,
                record.environment_name,
                status_markup(record.status.value),
                value if value is not None else "[dim]-[/dim]",
                record.description,
            )
        self.console.print(table)


class SecretsSetCommand(ProjectCommand):
    """Batch-edit one environment, then optionally propagate."""

    def __init__(
        self,
        project_slug: str,
        environment: str,
        pairs: Tuple[str, ...],
        description: str = None,
        propagate: Tuple[str, ...] = (),
        propagate_all: bool = False,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.environment = environment
        self.pairs = pairs
        self.description = description
        self.propagate = propagate
        self.propagate_all = propagate_all

    def execute(self) -> None:
        """Execute secrets:set command."""
        pairs = parse_pairs(self.pairs)
        if self.description is not None and len(pairs) != 1:
            self.exit_with_error("--description needs exactly one KEY=VALUE")

        environment = self.get_environment(self.environment)
        targets = self._targets(environment)
        self.show_header(
            title="Set Secrets",
            project=self.project.slug,
            environment=environment.slug,
            details={"Keys": ", ".join(key for key, _ in pairs)},
        )
        logger = self.init_logger(self.project.slug, "secrets-set")

        session = EditSession(
            self.secret_service, self.project.id, environment.id, self.identity
        )
        for key, value in pairs:
            existing = self.store.find_secret(self.project.id, environment.id, key)
            if existing is not None:
                session.stage_value(existing.id, value)
            else:
                session.stage_new(key, value)
        if self.description is not None:
            session.stage_description(pairs[0][0], self.description)

        if not session.has_changes:
            if self.json_output:
                self.output_json({"commit": None, "propagation": None})
                return
            self.print_dim("Nothing changed")
            return

        if logger:
            logger.step(f"Committing to {environment.slug}")
        try:
            result = session.commit()
        except CommitError as e:
            if logger:
                for key in e.result.committed_keys:
                    logger.success(f"{key} saved before the failure")
            raise

        if logger:
            for key in result.committed_keys:
                logger.success(f"{key} saved")
            for key in result.descriptions:
                logger.success(f"{key} description updated")

        propagation = None
        if result.offers_propagation:
            if targets:
                if logger:
                    logger.step(f"Propagating to {', '.join(env.slug for env in targets)}")
                propagation = session.propagate([env.id for env in targets])
                if logger:
                    names = {env.id: env.slug for env in targets}
                    for failure in propagation.failed:
                        logger.warning(
                            f"{failure.key} → {names[failure.environment_id]}: {failure.error}"
                        )
            else:
                session.skip()

        if self.json_output:
            self.output_json(
                {
                    "commit": result.to_dict(),
                    "propagation": propagation.to_dict() if propagation else None,
                }
            )
            return

        if propagation is not None and not propagation.is_success:
            self.print_warning(
                f"Propagation failed for {len(propagation.failed)} write(s)"
            )
            raise SystemExit(1)
        self.print_success(f"Saved {len(result.secrets)} secret(s) to {environment.slug}")

    def _targets(self, environment):
        available = [env for env in self.environments if env.id != environment.id]
        if self.propagate_all:
            return available
        if not self.propagate:
            return []
        by_slug = {env.slug: env for env in available}
        unknown = [slug for slug in self.propagate if slug not in by_slug]
        if unknown:
            raise ValidationError(
                "Invalid propagation target(s)",
                context=f"{', '.join(unknown)} (available: {', '.join(by_slug)})",
            )
        return [by_slug[slug] for slug in dict.fromkeys(self.propagate)]


class SecretCommand(ProjectCommand):
    """Base for commands acting on one key in one environment."""

    def __init__(
        self,
        project_slug: str,
        key: str,
        environment: str = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.key = key
        self.environment = environment

    def find_secret(self):
        environment = self.get_environment(self.environment)
        secret = self.store.find_secret(self.project.id, environment.id, self.key)
        if secret is None:
            raise NotFoundError(f"{self.key} not found in {environment.slug}")
        return secret


class SecretsDeleteCommand(SecretCommand):
    """Delete a key from one environment."""

    def execute(self) -> None:
        """Execute secrets:delete command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can delete secrets")

        secret = self.find_secret()
        logger = self.init_logger(self.project.slug, "secrets-delete")
        self.secret_service.delete_secret(secret.id, actor=self.identity.actor)

        if self.json_output:
            self.output_json({"deleted": self.key, "environment": self.environment})
            return
        logger.success(f"{self.key} removed from {self.environment}")
        self.print_success(f"Deleted {self.key} from {self.environment}")


class SecretsSyncCommand(SecretCommand):
    """Mark a key as current in one environment without changing its value."""

    def execute(self) -> None:
        """Execute secrets:sync command."""
        if not self.identity.is_admin:
            self.exit_with_error("Only admins can mark secrets as synced")

        secret = self.find_secret()
        secret = self.secret_service.mark_synced(secret.id, actor=self.identity.actor)

        if self.json_output:
            self.output_json(
                {
                    "key": secret.key,
                    "environment": self.environment,
                    "updated_at": secret.updated_at.isoformat(),
                }
            )
            return
        self.print_success(f"{self.key} marked as synced in {self.environment}")


class SecretsHistoryCommand(SecretCommand):
    """Audit entries of a key in one environment."""

    def execute(self) -> None:
        """Execute secrets:history command."""
        secret = self.find_secret()
        entries = self.secret_service.secret_history(secret.id)

        if self.json_output:
            self.output_json(
                {
                    "key": self.key,
                    "environment": self.environment,
                    "version": secret.version,
                    "history": [
                        {
                            "action": entry.action,
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
            title=f"History of {self.key}",
            project=self.project.slug,
            environment=self.environment,
            details={"Version": secret.version},
        )
        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("When", style="dim", no_wrap=True)
        table.add_column("Action", style="cyan")
        table.add_column("By")
        for entry in entries:
            table.add_row(
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.action,
                entry.performed_by or "",
            )
        self.console.print(table)


class SecretsDescribeCommand(ProjectCommand):
    """Set the shared description of a key."""

    def __init__(
        self,
        project_slug: str,
        key: str,
        description: str,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.key = key
        self.description = description

    def execute(self) -> None:
        """Execute secrets:describe command."""
        entry = self.secret_service.registry.update_description(
            self.project.id, self.key, self.description
        )
        if self.json_output:
            self.output_json({"key": entry.key, "description": entry.description})
            return
        self.print_success(f"Description of {self.key} updated")


class SecretsCompareCommand(ProjectCommand):
    """One key side by side across environments."""

    def __init__(
        self,
        project_slug: str,
        key: str,
        no_mask: bool = False,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.key = key
        self.no_mask = no_mask

    def execute(self) -> None:
        """Execute secrets:compare command."""
        rows = self.secret_service.compare_key(
            self.project.id, self.key, [env.id for env in self.environments]
        )

        if self.json_output:
            data = []
            for row in rows:
                item = row.to_dict()
                if not self.no_mask:
                    item["value"] = mask_value(self.key, row.value)
                data.append(item)
            self.output_json({"key": self.key, "environments": data})
            return

        self.show_header(title=f"Compare {self.key}", project=self.project.slug)
        table = Table(show_header=True, header_style="bold cyan", padding=(0, 1))
        table.add_column("Environment", style="cyan")
        table.add_column("Status")
        table.add_column("Value", style="green")
        table.add_column("Version", justify="right")
        table.add_column("Latest")
        for row in rows:
            value = row.value if self.no_mask else mask_value(self.key, row.value)
            if row.is_latest:
                latest = "[green]●[/green]"
            elif row.value is not None and row.matches_latest:
                latest = "[dim]same value[/dim]"
            else:
                latest = ""
            table.add_row(
                row.environment_name,
                status_markup(row.status.value),
                value if value is not None else "[dim]-[/dim]",
                str(row.version) if row.version else "-",
                latest,
            )
        self.console.print(table)


class SecretsImportCommand(ProjectCommand):
    """Import a .env file into one environment."""

    def __init__(
        self,
        project_slug: str,
        environment: str,
        path: str,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose, json_output=json_output)
        self.environment = environment
        self.path = Path(path)

    def execute(self) -> None:
        """Execute secrets:import command."""
        environment = self.get_environment(self.environment)
        self.show_header(
            title="Import .env",
            project=self.project.slug,
            environment=environment.slug,
            details={"File": str(self.path)},
        )
        logger = self.init_logger(self.project.slug, "secrets-import")

        saved, skipped = self.secret_service.import_dotenv(
            self.project.id, environment.id, self.path, actor=self.identity.actor
        )

        if self.json_output:
            self.output_json({"saved": saved, "skipped": skipped})
            return

        for key in saved:
            logger.success(key)
        for key in skipped:
            logger.warning(f"Skipped {key}")
        self.print_success(f"Imported {len(saved)} secret(s) into {environment.slug}")


class SecretsExportCommand(ProjectCommand):
    """Write one environment's secrets as .env or YAML."""

    def __init__(
        self,
        project_slug: str,
        environment: str,
        fmt: str = "env",
        output: str = None,
        verbose: bool = False,
    ):
        super().__init__(project_slug, verbose=verbose)
        self.environment = environment
        self.fmt = fmt
        self.output = Path(output) if output else None

    def execute(self) -> None:
        """Execute secrets:export command."""
        environment = self.get_environment(self.environment)
        content = self.secret_service.export_environment(
            self.project.id, environment.id, self.fmt
        )

        if self.output is None:
            click.echo(content, nl=False)
            return

        self.output.write_text(content)
        self.print_success(f"Exported {environment.slug} to {self.output}")

def _project_env_options(func):
    func = click.option("--env", "-e", "environment", required=True, help="Environment slug")(func)
    func = click.option("--project", "-p", required=True, help="Project slug")(func)
    return func


@click.command(name="secrets:list")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--env", "-e", "environment", help="Only this environment")
@click.option(
    "--status",
    type=click.Choice([s.value for s in SyncStatus]),
    help="Only keys with this status",
)
@click.option("--no-mask", is_flag=True, help="Show full values")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_list(project, environment, status, no_mask, verbose, json_output):
    """
    Show sync status of every key

    \b
    Examples:
      secretsync secrets:list -p growth
      secretsync secrets:list -p growth -e staging --status OUTDATED
    """
    cmd = SecretsListCommand(
        project,
        environment=environment,
        status=status,
        no_mask=no_mask,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()


@click.command(name="secrets:set")
@click.argument("pairs", nargs=-1, required=True)
@_project_env_options
@click.option("--description", "-d", help="Shared description (single key only)")
@click.option(
    "--propagate",
    "-P",
    multiple=True,
    help="Also write the new values to this environment (repeatable)",
)
@click.option("--propagate-all", is_flag=True, help="Propagate to every other environment")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_set(
    project, environment, pairs, description, propagate, propagate_all, verbose, json_output
):
    """
    Set secrets in an environment

    \b
    Examples:
      secretsync secrets:set DATABASE_URL=postgres://... -p growth -e development
      secretsync secrets:set API_KEY=abc -p growth -e staging -P production
      secretsync secrets:set A=1 B=2 -p growth -e development --propagate-all
    """
    cmd = SecretsSetCommand(
        project,
        environment,
        pairs,
        description=description,
        propagate=propagate,
        propagate_all=propagate_all,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()


@click.command(name="secrets:delete")
@click.argument("key")
@_project_env_options
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_delete(project, environment, key, verbose, json_output):
    """
    Delete a key from one environment

    The key stays in the registry and shows as MISSING there.
    """
    cmd = SecretsDeleteCommand(
        project, key, environment=environment, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:sync")
@click.argument("key")
@_project_env_options
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_sync(project, environment, key, verbose, json_output):
    """
    Mark a key as synced in one environment

    Confirms the current value without changing it.
    """
    cmd = SecretsSyncCommand(
        project, key, environment=environment, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:history")
@click.argument("key")
@_project_env_options
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_history(project, environment, key, verbose, json_output):
    """Show the audit history of a key in one environment"""
    cmd = SecretsHistoryCommand(
        project, key, environment=environment, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:describe")
@click.argument("key")
@click.argument("description")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_describe(project, key, description, verbose, json_output):
    """
    Set the shared description of a key

    Descriptions are project-wide and never change sync status.
    """
    cmd = SecretsDescribeCommand(
        project, key, description, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:compare")
@click.argument("key")
@click.option("--project", "-p", required=True, help="Project slug")
@click.option("--no-mask", is_flag=True, help="Show full values")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_compare(project, key, no_mask, verbose, json_output):
    """Compare one key across environments"""
    cmd = SecretsCompareCommand(
        project, key, no_mask=no_mask, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_project_env_options
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def secrets_import(project, environment, path, verbose, json_output):
    """
    Import a .env file into an environment

    \b
    Examples:
      secretsync secrets:import .env.production -p growth -e production
    """
    cmd = SecretsImportCommand(
        project, environment, path, verbose=verbose, json_output=json_output
    )
    cmd.run()


@click.command(name="secrets:export")
@_project_env_options
@click.option(
    "--format",
    "fmt",
    type=click.Choice(EXPORT_FORMATS),
    default="env",
    show_default=True,
    help="Output format",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to file")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def secrets_export(project, environment, fmt, output, verbose):
    """
    Export an environment's secrets

    \b
    Examples:
      secretsync secrets:export -p growth -e staging > .env.staging
      secretsync secrets:export -p growth -e staging --format yaml -o staging.yml
    """
    cmd = SecretsExportCommand(project, environment, fmt=fmt, output=output, verbose=verbose)
    cmd.run()
