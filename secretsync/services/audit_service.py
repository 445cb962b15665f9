"""
Audit Service

Append-only audit trail. Entries are informational: a retried operation
may append a duplicate, which is acceptable.
"""

from datetime import datetime
from typing import Callable, List, Optional

from secretsync.models.tables import AuditAction, AuditLogEntry
from secretsync.store import SecretStore
from secretsync.utils import MonotonicClock


class AuditService:
    """Write and read audit entries."""

    def __init__(self, store: SecretStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or MonotonicClock()

    def append(
        self,
        project_id: str,
        action: AuditAction,
        description: str,
        environment_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> AuditLogEntry:
        """Append one entry."""
        entry = AuditLogEntry(
            project_id=project_id,
            environment_id=environment_id,
            action=AuditAction(action).value,
            entity_id=entity_id,
            description=description,
            timestamp=at or self.clock(),
            performed_by=performed_by,
        )
        return self.store.append_audit_log(entry)

    def get_audit_logs(
        self,
        project_id: str,
        environment_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditLogEntry]:
        """Entries for a project (optionally one environment), newest first."""
        return self.store.get_audit_logs(project_id, environment_id=environment_id, limit=limit)

    def secret_history(self, secret_id: str, project_id: str) -> List[AuditLogEntry]:
        """Entries that touched a given secret, newest first."""
        return self.store.get_audit_logs(project_id, entity_id=secret_id)
