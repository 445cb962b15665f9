"""
secretsync Domain Models

SQLAlchemy tables plus dataclass result and identity models.
"""

from .tables import (
    AuditAction,
    AuditLogEntry,
    Environment,
    MemberStatus,
    Project,
    ProjectMember,
    RegistryEntry,
    Secret,
    User,
)
from .results import (
    CommitResult,
    CommittedSecret,
    EnvironmentSyncSummary,
    KeyComparisonRow,
    PropagationFailure,
    PropagationResult,
    SearchResults,
    SyncRecord,
    SyncStatus,
)
from .identity import (
    Identity,
    IdentityProvider,
    StaticIdentityProvider,
)

__all__ = [
    # Tables
    "AuditAction",
    "AuditLogEntry",
    "Environment",
    "MemberStatus",
    "Project",
    "ProjectMember",
    "RegistryEntry",
    "Secret",
    "User",
    # Results
    "CommitResult",
    "CommittedSecret",
    "EnvironmentSyncSummary",
    "KeyComparisonRow",
    "PropagationFailure",
    "PropagationResult",
    "SearchResults",
    "SyncRecord",
    "SyncStatus",
    # Identity
    "Identity",
    "IdentityProvider",
    "StaticIdentityProvider",
]
