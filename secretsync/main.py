"""secretsync CLI - Main entry point"""

import functools
import os
import sys

# Rich-Click: CLI help with colors
import rich_click as click
from rich.console import Console

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

# COMMANDS / OPTIONS
click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"

# HEADERS
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"

# HELP TEXT
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_HELPTEXT = ""
click.rich_click.STYLE_OPTION_HELP = ""

# METAVARS / REQUIRED / DEFAULTS
click.rich_click.STYLE_METAVAR = "bold yellow"
click.rich_click.STYLE_REQUIRED_SHORT = "bold red"
click.rich_click.STYLE_REQUIRED_LONG = "bold red"
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"

# PANEL BORDERS
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "cyan"
click.rich_click.ALIGN_ERRORS_PANEL = "left"
click.rich_click.ERRORS_EPILOGUE = ""

from secretsync import __version__  # noqa: E402
from secretsync.commands.audit import audit_list  # noqa: E402
from secretsync.commands.dashboard import dashboard, db_upgrade  # noqa: E402
from secretsync.commands.env import env_create, env_delete, env_list  # noqa: E402
from secretsync.commands.members import (  # noqa: E402
    members_add,
    members_list,
    members_remove,
)
from secretsync.commands.projects import projects_create, projects_list  # noqa: E402
from secretsync.commands.search import search  # noqa: E402
from secretsync.commands.secrets import (  # noqa: E402
    secrets_compare,
    secrets_delete,
    secrets_describe,
    secrets_export,
    secrets_history,
    secrets_import,
    secrets_list,
    secrets_set,
    secrets_sync,
)
from secretsync.commands.users import users_register  # noqa: E402

console = Console()

# Command groups that accept a project namespace: <project>:secrets:set
PROJECT_NAMESPACES = {"env", "secrets", "members", "audit"}


class NamespacedGroup(click.RichGroup):
    """Click group that supports project-namespaced commands like 'growth:secrets:list'"""

    def get_command(self, ctx, cmd_name):
        command = super().get_command(ctx, cmd_name)
        if command is not None or cmd_name.count(":") < 2:
            return command

        # <project>:<group>:<action>
        project, sub_cmd = cmd_name.split(":", 1)
        if sub_cmd.split(":", 1)[0] not in PROJECT_NAMESPACES:
            return None
        base_command = super().get_command(ctx, sub_cmd)
        if base_command is None:
            return None

        wrapper = click.Command(
            name=cmd_name,
            callback=functools.partial(self._inject_project, base_command.callback, project),
            params=[p for p in base_command.params if p.name != "project"],
            help=base_command.help,
        )
        return wrapper

    def _inject_project(self, original_callback, project_slug, *args, **kwargs):
        """Inject project parameter into the command"""
        kwargs["project"] = project_slug
        return original_callback(*args, **kwargs)


@click.group(cls=NamespacedGroup)
@click.version_option(version=__version__)
def cli() -> None:
    """
    secretsync - keep secrets in step across environments.

    \b
    Quick Start:
      secretsync projects:create "Growth"
      secretsync secrets:set DATABASE_URL=postgres://... -p growth -e development
      secretsync secrets:list -p growth
      secretsync growth:secrets:set API_KEY=abc -e staging --propagate-all

    \b
    Sync status:
      SYNCED    confirmed current since the last edit of the key
      OUTDATED  the key was edited elsewhere after this copy
      MISSING   the environment has no copy of the key
    """


# Register project commands
cli.add_command(projects_list)
cli.add_command(projects_create)
# Register user commands
cli.add_command(users_register)
# Register environment commands
cli.add_command(env_list)
cli.add_command(env_create)
cli.add_command(env_delete)
# Register secret commands
cli.add_command(secrets_list)
cli.add_command(secrets_set)
cli.add_command(secrets_delete)
cli.add_command(secrets_sync)
cli.add_command(secrets_history)
cli.add_command(secrets_describe)
cli.add_command(secrets_compare)
cli.add_command(secrets_import)
cli.add_command(secrets_export)
# Register member commands
cli.add_command(members_list)
cli.add_command(members_add)
cli.add_command(members_remove)
# Register audit / search
cli.add_command(audit_list)
cli.add_command(search)
# Register dashboard / database commands
cli.add_command(dashboard)
cli.add_command(db_upgrade)


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")
            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    cli()


if __name__ == "__main__":
    main()
