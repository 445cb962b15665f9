"""
Identity Models

The identity collaborator hands the core a user id and an admin flag.
Raw user records may carry the flag as `isAdmin` or `is_admin`; it is
normalized here, once, so the rest of the code checks one boolean.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Identity:
    """Resolved caller identity."""

    user_id: Optional[str]
    is_admin: bool = False
    label: Optional[str] = None  # email or display name used as audit actor

    @property
    def actor(self) -> str:
        """Label recorded in audit entries and on secrets."""
        return self.label or self.user_id or "Unknown"

    @classmethod
    def from_record(cls, record: Any) -> "Identity":
        """
        Build an identity from a user record (ORM row or mapping).

        Args:
            record: Object or mapping with id/email and an admin flag

        Returns:
            Identity with a normalized admin flag
        """
        if isinstance(record, Mapping):
            get = record.get
        else:

            def get(name, default=None):
                return getattr(record, name, default)

        user_id = get("id") or get("user_id") or get("userId")
        is_admin = bool(get("is_admin") or get("isAdmin"))
        label = get("email") or get("name")
        return cls(user_id=user_id, is_admin=is_admin, label=label)

    @classmethod
    def local_admin(cls, label: str = "cli") -> "Identity":
        """Operator identity for local tooling."""
        return cls(user_id=None, is_admin=True, label=label)


class IdentityProvider(ABC):
    """Source of the current caller identity."""

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """Return the current identity, or None when nobody is signed in."""
        pass


class StaticIdentityProvider(IdentityProvider):
    """Identity provider that always returns the same identity."""

    def __init__(self, identity: Optional[Identity]):
        self.identity = identity

    def current_identity(self) -> Optional[Identity]:
        return self.identity
