"""Dashboard management commands."""

import click
import uvicorn

from secretsync.base import BaseCommand
from secretsync.constants import DEFAULT_DASHBOARD_HOST, DEFAULT_DASHBOARD_PORT
from secretsync.database import check_connection, upgrade_database


class DbUpgradeCommand(BaseCommand):
    """Apply database migrations."""

    def execute(self) -> None:
        """Execute db:upgrade command."""
        logger = self.init_logger("global", "db-upgrade")
        if logger:
            logger.step("Applying migrations")
        upgrade_database(self.settings.database_url)
        if logger:
            logger.success("Database schema is up to date")


class DashboardCommand(BaseCommand):
    """Serve the dashboard API."""

    def __init__(
        self,
        host: str = DEFAULT_DASHBOARD_HOST,
        port: int = DEFAULT_DASHBOARD_PORT,
        reload: bool = False,
        migrate: bool = True,
        verbose: bool = False,
    ):
        super().__init__(verbose=verbose)
        self.host = host
        self.port = port
        self.reload = reload
        self.migrate = migrate

    def execute(self) -> None:
        """Execute dashboard command."""
        self.show_header(
            title="Dashboard",
            details={"API": f"http://{self.host}:{self.port}/api"},
        )

        if self.migrate:
            upgrade_database(self.settings.database_url)
        check_connection()
        self.print_success("Database ready")

        uvicorn.run(
            "secretsync.dashboard.main:app",
            host=self.host,
            port=self.port,
            reload=self.reload,
            log_level="debug" if self.verbose else "info",
        )


@click.command(name="db:upgrade")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def db_upgrade(verbose):
    """Apply database migrations (SECRETSYNC_DB_URL)"""
    cmd = DbUpgradeCommand(verbose=verbose)
    cmd.run()


@click.command(name="dashboard")
@click.option("--host", default=DEFAULT_DASHBOARD_HOST, show_default=True, help="Bind host")
@click.option("--port", default=DEFAULT_DASHBOARD_PORT, show_default=True, help="Bind port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.option("--no-migrate", is_flag=True, help="Skip database migrations")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
def dashboard(host, port, reload, no_migrate, verbose):
    """
    Start the dashboard API server

    \b
    Examples:
      secretsync dashboard
      secretsync dashboard --port 9000 --reload
    """
    cmd = DashboardCommand(
        host=host, port=port, reload=reload, migrate=not no_migrate, verbose=verbose
    )
    cmd.run()
