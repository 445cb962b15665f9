"""
Sync Evaluation Service

Classifies every (environment, key) pair of a project against the registry:

- MISSING:  the environment has no secret for the key
- OUTDATED: the environment's copy was last written (or marked synced)
            before the registry watermark
- SYNCED:   otherwise

Only timestamps are compared. Two environments holding identical values
can still differ in status: OUTDATED means "not confirmed current since
the last edit anywhere", not "different content". Mark-synced is the way
to confirm a copy without rewriting it.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from secretsync.exceptions import ProjectNotFoundError
from secretsync.models.results import (
    EnvironmentSyncSummary,
    KeyComparisonRow,
    SyncRecord,
    SyncStatus,
)
from secretsync.models.tables import Environment, Secret
from secretsync.store import SecretStore


def classify(secret: Optional[Secret], watermark: Optional[datetime]) -> SyncStatus:
    """
    Classify one environment's copy of a key.

    Args:
        secret: The environment's secret, or None
        watermark: Registry last_updated_at for the key

    Returns:
        SyncStatus
    """
    if secret is None:
        return SyncStatus.MISSING
    if watermark is not None and secret.updated_at < watermark:
        return SyncStatus.OUTDATED
    return SyncStatus.SYNCED


class SyncService:
    """Pure read-side evaluation of sync status."""

    def __init__(self, store: SecretStore):
        self.store = store

    def _environments(
        self, project_id: str, environment_ids: Optional[Iterable[str]]
    ) -> List[Environment]:
        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)
        environments = self.store.list_environments(project_id)
        if environment_ids is not None:
            allowed = set(environment_ids)
            environments = [env for env in environments if env.id in allowed]
        return environments

    def evaluate(
        self, project_id: str, environment_ids: Optional[Iterable[str]] = None
    ) -> List[SyncRecord]:
        """
        Compute the status of every registry key in every environment.

        Args:
            project_id: Project id
            environment_ids: Restrict to these environments (None = all)

        Returns:
            One SyncRecord per (environment, registry key), ordered by
            environment then key
        """
        environments = self._environments(project_id, environment_ids)
        registry = self.store.get_registry(project_id)

        by_location: Dict[tuple, Secret] = {
            (secret.environment_id, secret.key): secret
            for secret in self.store.get_secrets(project_id)
        }

        records: List[SyncRecord] = []
        for environment in environments:
            for key, entry in registry.items():
                secret = by_location.get((environment.id, key))
                records.append(
                    SyncRecord(
                        project_id=project_id,
                        environment_id=environment.id,
                        environment_name=environment.name,
                        key=key,
                        status=classify(secret, entry.last_updated_at),
                        value=secret.value if secret else None,
                        description=entry.description or "",
                        global_last_updated=entry.last_updated_at,
                        local_last_updated=secret.updated_at if secret else None,
                        secret_id=secret.id if secret else None,
                    )
                )
        return records

    def summarize(
        self, project_id: str, environment_ids: Optional[Iterable[str]] = None
    ) -> List[EnvironmentSyncSummary]:
        """Per-environment counts of synced/outdated/missing keys."""
        environments = self._environments(project_id, environment_ids)
        summaries = {
            env.id: EnvironmentSyncSummary(environment_id=env.id, environment_name=env.name)
            for env in environments
        }
        for record in self.evaluate(project_id, [env.id for env in environments]):
            summary = summaries[record.environment_id]
            if record.status is SyncStatus.SYNCED:
                summary.synced += 1
            elif record.status is SyncStatus.OUTDATED:
                summary.outdated += 1
            else:
                summary.missing += 1
        return list(summaries.values())

    def compare_key(
        self,
        project_id: str,
        key: str,
        environment_ids: Optional[Iterable[str]] = None,
    ) -> List[KeyComparisonRow]:
        """
        Side-by-side values of one key across environments.

        The newest copy (by updated_at) is flagged as latest, and every
        other copy says whether its value matches it. Status still comes
        from the watermark rule.
        """
        environments = self._environments(project_id, environment_ids)
        entry = self.store.get_registry_entry(project_id, key)
        watermark = entry.last_updated_at if entry else None

        by_environment = {
            secret.environment_id: secret
            for secret in self.store.get_secrets_for_key(project_id, key)
        }
        latest = max(by_environment.values(), key=lambda s: s.updated_at, default=None)

        rows = []
        for environment in environments:
            secret = by_environment.get(environment.id)
            rows.append(
                KeyComparisonRow(
                    environment_id=environment.id,
                    environment_name=environment.name,
                    status=classify(secret, watermark),
                    value=secret.value if secret else None,
                    updated_at=secret.updated_at if secret else None,
                    version=secret.version if secret else None,
                    is_latest=bool(secret and latest and secret.updated_at == latest.updated_at),
                    matches_latest=bool(secret and latest and secret.value == latest.value),
                )
            )
        return rows
