"""
Registry Service

Maintains the per-(project, key) registry entry: the shared description and
the watermark, the time the key's value was last written in any
environment. The watermark only moves on value writes and never goes back.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from secretsync.models.tables import RegistryEntry
from secretsync.store import SecretStore
from secretsync.utils import MonotonicClock, validate_secret_key


@dataclass
class RegistryView:
    """Read-only view of a registry entry."""

    key: str
    description: str
    last_updated_at: datetime


class RegistryService:
    """Registry lifecycle: watermark and description upserts."""

    def __init__(self, store: SecretStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or MonotonicClock()

    def record_write(
        self, project_id: str, key: str, at: Optional[datetime] = None
    ) -> RegistryEntry:
        """
        Advance the watermark for a key after a value write.

        Creates the entry with an empty description if it does not exist.
        The description of an existing entry is left untouched.

        Args:
            project_id: Project id
            key: Secret key
            at: Time of the write (defaults to now)

        Returns:
            The registry entry
        """
        at = at or self.clock()
        entry = self.store.get_registry_entry(project_id, key)
        if entry is not None and entry.last_updated_at and entry.last_updated_at > at:
            # Clock stepped back; keep the watermark monotonic
            at = entry.last_updated_at
        return self.store.upsert_registry_entry(project_id, key, last_updated_at=at)

    def update_description(
        self, project_id: str, key: str, description: str
    ) -> RegistryEntry:
        """
        Set the shared description of a key without touching the watermark.

        An unknown key gets an entry whose watermark is the newest write
        among its existing secrets (now if there are none), so creating it
        does not flip any environment to OUTDATED.
        """
        validate_secret_key(key)
        description = description or ""

        entry = self.store.get_registry_entry(project_id, key)
        if entry is not None:
            return self.store.upsert_registry_entry(project_id, key, description=description)

        secrets = self.store.get_secrets_for_key(project_id, key)
        watermark = max((s.updated_at for s in secrets), default=None) or self.clock()
        return self.store.upsert_registry_entry(
            project_id, key, description=description, last_updated_at=watermark
        )

    def get_registry(self, project_id: str) -> Dict[str, RegistryView]:
        """Registry of a project keyed by secret key."""
        return {
            key: RegistryView(
                key=key,
                description=entry.description or "",
                last_updated_at=entry.last_updated_at,
            )
            for key, entry in self.store.get_registry(project_id).items()
        }

    def get_entry(self, project_id: str, key: str) -> Optional[RegistryView]:
        entry = self.store.get_registry_entry(project_id, key)
        if entry is None:
            return None
        return RegistryView(
            key=entry.key,
            description=entry.description or "",
            last_updated_at=entry.last_updated_at,
        )
