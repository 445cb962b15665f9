"""
Secret Management Service

The write path for secret values. Every value write:

1. validates key and target before anything is stored
2. upserts the environment's secret (committed on its own)
3. advances the registry watermark for the key
4. appends a SECRET_UPDATE audit entry

Steps 3 and 4 are best-effort. If either fails after the value is
committed, the value is kept and the failure is logged; the watermark
and audit trail may lag behind.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import yaml
from dotenv import dotenv_values

from secretsync.cache import NULL_CACHE, Cache
from secretsync.constants import EXPORT_FORMATS, UNKNOWN_ACTOR
from secretsync.exceptions import (
    EnvironmentNotFoundError,
    ProjectNotFoundError,
    SecretNotFoundError,
    SecretSyncError,
    ValidationError,
)
from secretsync.models.results import KeyComparisonRow
from secretsync.models.tables import AuditAction, AuditLogEntry, Environment, Secret
from secretsync.services.audit_service import AuditService
from secretsync.services.registry_service import RegistryService
from secretsync.services.sync_service import SyncService
from secretsync.store import SecretStore
from secretsync.utils import MonotonicClock, is_valid_secret_key, validate_secret_key

logger = logging.getLogger(__name__)


class SecretService:
    """
    Secret write path and per-secret queries.

    Responsibilities:
    - Save / delete / mark-synced one environment's copy of a key
    - Keep the registry watermark and audit trail in step (best-effort)
    - Key comparison, history and .env import
    """

    def __init__(
        self,
        store: SecretStore,
        clock: Optional[Callable[[], datetime]] = None,
        cache: Cache = NULL_CACHE,
    ):
        """
        Initialize secret service.

        Args:
            store: Storage collaborator
            clock: Time source for updated_at / watermark / audit timestamps
            cache: Search cache, cleared on writes
        """
        self.store = store
        self.clock = clock or MonotonicClock()
        self.cache = cache
        self.registry = RegistryService(store, clock=self.clock)
        self.audit = AuditService(store, clock=self.clock)
        self.sync = SyncService(store)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def require_environment(self, project_id: str, environment_id: str) -> Environment:
        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)
        environment = self.store.get_environment(environment_id)
        if environment is None:
            raise EnvironmentNotFoundError(environment_id)
        if environment.project_id != project_id:
            raise ValidationError(
                f"Environment '{environment.slug}' does not belong to project '{project_id}'"
            )
        return environment

    def get_secret(self, secret_id: str) -> Secret:
        """Get a secret by id."""
        secret = self.store.get_secret(secret_id)
        if secret is None:
            raise SecretNotFoundError(secret_id)
        return secret

    def get_secrets(
        self, project_id: str, environment_id: Optional[str] = None
    ) -> List[Secret]:
        """Get secrets for a project, optionally for one environment."""
        return self.store.get_secrets(project_id, environment_id)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def save_secret(
        self,
        project_id: str,
        environment_id: str,
        key: str,
        value: str,
        actor: Optional[str] = None,
    ) -> Secret:
        """
        Write a value for a key in one environment.

        Saving the same value twice still bumps the version: a write is a
        write, content is not diffed.

        Args:
            project_id: Project id
            environment_id: Target environment id
            key: Secret key ([A-Z0-9_]+)
            value: New value (empty string is legal)
            actor: Label of who made the change

        Returns:
            The written secret

        Raises:
            ValidationError: Bad key, None value, or foreign environment
            NotFoundError: Unknown project or environment
            StorageError: The value write itself failed
        """
        validate_secret_key(key)
        if value is None:
            raise ValidationError(f"Value for '{key}' is required")
        if not isinstance(value, str):
            raise ValidationError(f"Value for '{key}' must be a string")
        self.require_environment(project_id, environment_id)

        actor = actor or UNKNOWN_ACTOR
        now = self.clock()

        secret = self.store.upsert_secret(project_id, environment_id, key, value, actor, now)

        try:
            self.registry.record_write(project_id, key, at=now)
        except SecretSyncError as e:
            logger.warning("Registry update for %s lagging behind value write: %s", key, e)

        self._audit(
            project_id,
            AuditAction.SECRET_UPDATE,
            f"Updated secret {key}",
            environment_id=environment_id,
            entity_id=secret.id,
            performed_by=actor,
            at=now,
        )
        self.cache.clear_search()
        return secret

    def add_secret(
        self,
        project_id: str,
        environment_id: str,
        key: str,
        value: str,
        actor: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Secret:
        """Save a (usually new) key and optionally set its shared description."""
        secret = self.save_secret(project_id, environment_id, key, value, actor)
        if description is not None:
            self.registry.update_description(project_id, key, description)
        return secret

    def delete_secret(self, secret_id: str, actor: Optional[str] = None) -> None:
        """
        Delete one environment's copy of a key.

        The registry entry is left as is, so other environments keep their
        status and this one reads MISSING.
        """
        secret = self.get_secret(secret_id)
        project_id = secret.project_id
        environment_id = secret.environment_id
        key = secret.key

        self.store.delete_secret(secret_id)

        self._audit(
            project_id,
            AuditAction.SECRET_DELETE,
            f"Deleted secret {key}",
            environment_id=environment_id,
            entity_id=secret_id,
            performed_by=actor or UNKNOWN_ACTOR,
        )
        self.cache.clear_search()

    def mark_synced(self, secret_id: str, actor: Optional[str] = None) -> Secret:
        """
        Confirm an environment's copy is current without changing it.

        Moves updated_at to now; value and version stay as they are.
        """
        self.get_secret(secret_id)
        now = self.clock()
        secret = self.store.touch_secret(secret_id, now)
        if secret is None:
            raise SecretNotFoundError(secret_id)

        self._audit(
            secret.project_id,
            AuditAction.SECRET_SYNC,
            f"Marked secret {secret.key} as synced",
            environment_id=secret.environment_id,
            entity_id=secret.id,
            performed_by=actor or UNKNOWN_ACTOR,
            at=now,
        )
        return secret

    def _audit(self, project_id: str, action: AuditAction, description: str, **kwargs) -> None:
        try:
            self.audit.append(project_id, action, description, **kwargs)
        except SecretSyncError as e:
            logger.warning("Audit log write failed (%s): %s", action.value, e)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def compare_key(
        self,
        project_id: str,
        key: str,
        environment_ids: Optional[Iterable[str]] = None,
    ) -> List[KeyComparisonRow]:
        """Values of one key across environments."""
        validate_secret_key(key)
        return self.sync.compare_key(project_id, key, environment_ids)

    def secret_history(self, secret_id: str) -> List[AuditLogEntry]:
        """Audit entries that touched a secret, newest first."""
        secret = self.get_secret(secret_id)
        return self.audit.secret_history(secret_id, secret.project_id)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_dotenv(
        self,
        project_id: str,
        environment_id: str,
        path: Path,
        actor: Optional[str] = None,
    ) -> Tuple[List[str], List[str]]:
        """
        Save every KEY=VALUE pair of a .env file into one environment.

        Pairs with an invalid key are skipped, and so are bare `KEY` lines
        with no `=`. `KEY=` imports an empty value.

        Returns:
            Tuple of (saved keys, skipped keys)
        """
        path = Path(path)
        if not path.exists():
            raise ValidationError(f"File not found: {path}")
        self.require_environment(project_id, environment_id)

        saved: List[str] = []
        skipped: List[str] = []
        for key, value in dotenv_values(path).items():
            if not is_valid_secret_key(key) or value is None:
                skipped.append(key)
                continue
            self.save_secret(project_id, environment_id, key, value, actor)
            saved.append(key)
        return saved, skipped

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_environment(
        self, project_id: str, environment_id: str, fmt: str = "env"
    ) -> str:
        """
        Render one environment's secrets as a .env file or a YAML mapping.

        Args:
            project_id: Project id
            environment_id: Environment id
            fmt: "env" or "yaml"

        Returns:
            File contents, keys sorted
        """
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(
                f"Unknown export format '{fmt}'",
                context=f"Use one of: {', '.join(EXPORT_FORMATS)}",
            )
        self.require_environment(project_id, environment_id)
        values = {
            secret.key: secret.value
            for secret in self.store.get_secrets(project_id, environment_id)
        }

        if fmt == "yaml":
            return yaml.safe_dump(values, default_flow_style=False, sort_keys=True)

        lines = []
        for key in sorted(values):
            value = values[key]
            if any(c in value for c in " #\"'\n"):
                escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
                value = f'"{escaped}"'
            lines.append(f"{key}={value}")
        return "\n".join(lines) + ("\n" if lines else "")
