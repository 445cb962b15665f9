"""User registration and lookups."""

from typing import Optional

from secretsync.config import Settings, get_settings
from secretsync.exceptions import ConflictError, NotFoundError, ValidationError
from secretsync.models.identity import Identity
from secretsync.models.tables import User
from secretsync.store import SecretStore


class UserService:
    """Users backing the identity collaborator."""

    def __init__(self, store: SecretStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def register_user(self, email: str, name: Optional[str] = None) -> User:
        """
        Create a user and activate pending invites for its email.

        The configured admin email registers as admin.

        Raises:
            ValidationError: Invalid email
            ConflictError: Email already registered
        """
        email = (email or "").strip()
        if not email or "@" not in email:
            raise ValidationError(f"Invalid email '{email}'")
        if self.store.get_user_by_email(email) is not None:
            raise ConflictError(f"User {email} already exists")

        user = User(
            email=email,
            name=name or email.split("@")[0],
            is_admin=self.settings.is_admin_email(email),
        )
        return self.store.add_user(user, activate=self.store.pending_invites(email))

    def get_user(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.store.get_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User {email} not found")
        return user

    def resolve_identity(self, user_id: str) -> Optional[Identity]:
        """Identity for a user id, or None if the user is unknown."""
        user = self.store.get_user(user_id)
        if user is None:
            return None
        return Identity.from_record(user)
