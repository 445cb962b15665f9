"""secretsync CLI - Search command"""

import click
from rich.table import Table

from secretsync.base import BaseCommand
from secretsync.constants import SEARCH_MIN_QUERY_LENGTH


class SearchCommand(BaseCommand):
    """Search projects and secret keys."""

    def __init__(self, query: str, verbose: bool = False, json_output: bool = False):
        super().__init__(verbose=verbose, json_output=json_output)
        self.query = query

    def execute(self) -> None:
        """Execute search command."""
        if len(self.query.strip()) < SEARCH_MIN_QUERY_LENGTH:
            self.exit_with_error(
                f"Query must be at least {SEARCH_MIN_QUERY_LENGTH} characters"
            )

        results = self.search_service.search(self.query, self.identity)

        if self.json_output:
            self.output_json(results.to_dict())
            return

        self.show_header(title="Search", details={"Query": self.query})
        if results.is_empty:
            self.print_dim("No matches")
            return

        if results.projects:
            table = Table(title="Projects", show_header=True, header_style="bold cyan")
            table.add_column("Slug", style="cyan")
            table.add_column("Name")
            for project in results.projects:
                table.add_row(project["slug"], project["name"])
            self.console.print(table)

        if results.secrets:
            table = Table(title="Secret keys", show_header=True, header_style="bold cyan")
            table.add_column("Key", style="cyan")
            table.add_column("Projects", justify="right")
            table.add_column("Used in", style="dim")
            for secret in results.secrets:
                table.add_row(
                    secret["key"],
                    str(secret["count"]),
                    ", ".join(p["slug"] for p in secret["used_in"]),
                )
            self.console.print(table)


@click.command(name="search")
@click.argument("query")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def search(query, verbose, json_output):
    """
    Search projects and secret keys

    \b
    Examples:
      secretsync search database
      secretsync search STRIPE --json
    """
    cmd = SearchCommand(query, verbose=verbose, json_output=json_output)
    cmd.run()
