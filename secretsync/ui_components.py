"""
secretsync CLI - UI Components
Standardized headers and status colors
"""

from rich.console import Console

BRAND = "secretsync"

# Color scheme
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

# Sync status colors
STATUS_COLORS = {
    "SYNCED": SUCCESS_COLOR,
    "OUTDATED": WARNING_COLOR,
    "MISSING": ERROR_COLOR,
}


def status_markup(status: str) -> str:
    """Rich markup for a sync status."""
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def show_header(
    title: str,
    subtitle: str = None,
    project: str = None,
    environment: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized secretsync command header.

    Args:
        title: Main title (e.g., "Secrets", "Propagate")
        subtitle: Optional subtitle line
        project: Project slug (if applicable)
        environment: Environment slug (if applicable)
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Set Secret",
            project="growth",
            environment="staging",
            details={"Key": "DATABASE_URL"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{BRAND}[/bold color(214)] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")
    if project:
        console.print(f"{prefix} Project: [cyan]{project}[/cyan]")
    if environment:
        console.print(f"{prefix} Environment: [cyan]{environment}[/cyan]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    # Single blank line after header
    console.print()
