"""
Base Command Class

Abstract base for all secretsync CLI commands.
Provides common functionality and structure.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from rich.console import Console
from sqlalchemy.orm import Session

from secretsync.cache import Cache
from secretsync.config import get_settings
from secretsync.database import get_db_session
from secretsync.exceptions import NotFoundError, SecretSyncError
from secretsync.logger import OperationLogger
from secretsync.models.identity import Identity
from secretsync.services import (
    AccessService,
    MemberService,
    ProjectService,
    SearchService,
    SecretService,
    UserService,
)
from secretsync.store import SecretStore
from secretsync.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling
    - Database session and services
    - JSON output support
    """

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.settings = get_settings()
        self.logger: Optional[OperationLogger] = None

        self._db: Optional[Session] = None
        self._store: Optional[SecretStore] = None
        self._identity: Optional[Identity] = None
        self.cache = Cache.from_url(self.settings.redis_url)

    # ------------------------------------------------------------------
    # Database and services
    # ------------------------------------------------------------------

    @property
    def store(self) -> SecretStore:
        if self._store is None:
            self._db = get_db_session()
            self._store = SecretStore(self._db)
        return self._store

    @property
    def secret_service(self) -> SecretService:
        return SecretService(self.store, cache=self.cache)

    @property
    def project_service(self) -> ProjectService:
        return ProjectService(self.store, cache=self.cache)

    @property
    def member_service(self) -> MemberService:
        return MemberService(self.store, cache=self.cache)

    @property
    def access_service(self) -> AccessService:
        return AccessService(self.store)

    @property
    def user_service(self) -> UserService:
        return UserService(self.store, settings=self.settings)

    @property
    def search_service(self) -> SearchService:
        return SearchService(self.store, cache=self.cache)

    @property
    def identity(self) -> Identity:
        """
        Identity the CLI acts as.

        SECRETSYNC_CLI_USER selects a registered user; without it the CLI
        runs as a local admin.
        """
        if self._identity is None:
            if self.settings.cli_user:
                user = self.store.get_user_by_email(self.settings.cli_user)
                if user is None:
                    raise NotFoundError(
                        f"CLI user {self.settings.cli_user} is not registered",
                        context="Unset SECRETSYNC_CLI_USER to act as local admin",
                    )
                self._identity = Identity.from_record(user)
            else:
                self._identity = Identity.local_admin()
        return self._identity

    def close(self) -> None:
        """Release the database session."""
        if self._db is not None:
            self._db.close()
            self._db = None
            self._store = None

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def init_logger(
        self, project_name: str, command_name: str
    ) -> Optional[OperationLogger]:
        """
        Initialize command logger (skip in JSON mode).

        Args:
            project_name: Project slug (use "global" for non-project commands)
            command_name: Command name

        Returns:
            OperationLogger instance or None if JSON mode
        """
        if self.json_output:
            return None
        self.logger = OperationLogger(
            project_name,
            command_name,
            log_dir=self.settings.log_dir,
            verbose=self.verbose,
        )
        return self.logger

    def output_json(self, data: Any, exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2, default=str))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def output_json_error(
        self, error: str, details: Optional[Dict[str, Any]] = None, exit_code: int = 1
    ) -> None:
        error_data = {"error": error}
        if details:
            error_data["details"] = details
        self.output_json(error_data, exit_code=exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        project: Optional[str] = None,
        environment: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title,
                subtitle=subtitle,
                project=project,
                environment=environment,
                details=details,
                console=self.console,
            )

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        """Print warning message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{message}[/dim]")

    def exit_with_error(self, message: str, code: int = 1) -> None:
        """
        Print error and exit.

        Args:
            message: Error message
            code: Exit code
        """
        if self.json_output:
            self.output_json_error(message, exit_code=code)
        self.print_error(message)
        raise SystemExit(code)

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def _report(self, title: str, message: str, context: Optional[str] = None) -> None:
        if self.json_output:
            print(json.dumps({"error": message, "details": context}, indent=2))
            return
        self.console.print(f"\n[bold red]✗ {title}:[/bold red] {message}")
        if context:
            self.console.print(f"  [dim]{context}[/dim]")
        self.console.print()
        if self.logger:
            self.logger.log_error(f"{title}: {message}", context=context)
            self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            if self.logger:
                self.console.print(
                    f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n"
                )
            raise SystemExit(130)
        except SystemExit:
            raise
        except SecretSyncError as e:
            self._report(type(e).__name__, e.message, e.context)
            raise SystemExit(1)
        except FileNotFoundError as e:
            self._report("File not found", str(e))
            raise SystemExit(1)
        except Exception as e:
            self._report(type(e).__name__, str(e))
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
            self.close()
