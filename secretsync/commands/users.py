"""secretsync CLI - User commands"""

import click

from secretsync.base import BaseCommand


class UsersRegisterCommand(BaseCommand):
    """Register a user; pending invites for the email become active."""

    def __init__(
        self,
        email: str,
        name: str = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.email = email
        self.name = name

    def execute(self) -> None:
        """Execute users:register command."""
        user = self.user_service.register_user(self.email, self.name)

        if self.json_output:
            self.output_json(
                {
                    "id": user.id,
                    "email": user.email,
                    "name": user.name,
                    "is_admin": user.is_admin,
                }
            )
            return

        role = "admin" if user.is_admin else "member"
        self.print_success(f"{user.email} registered ({role})")
        self.print_dim(f"id: {user.id}")


@click.command(name="users:register")
@click.argument("email")
@click.option("--name", help="Display name (defaults to the email prefix)")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def users_register(email, name, verbose, json_output):
    """
    Register a user

    \b
    Examples:
      secretsync users:register dev@example.com
      SECRETSYNC_CLI_USER=dev@example.com secretsync projects:list
    """
    cmd = UsersRegisterCommand(email, name=name, verbose=verbose, json_output=json_output)
    cmd.run()
