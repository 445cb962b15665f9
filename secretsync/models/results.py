"""
Result Models

Dataclass models for sync evaluation, edit commits, propagation and search.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class SyncStatus(str, Enum):
    """Status of one environment's copy of a key relative to the watermark."""

    SYNCED = "SYNCED"
    OUTDATED = "OUTDATED"
    MISSING = "MISSING"


@dataclass
class SyncRecord:
    """Classification of one (environment, key) pair."""

    project_id: str
    environment_id: str
    environment_name: str
    key: str
    status: SyncStatus
    value: Optional[str] = None
    description: str = ""
    global_last_updated: Optional[datetime] = None
    local_last_updated: Optional[datetime] = None
    secret_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "environment_id": self.environment_id,
            "environment_name": self.environment_name,
            "key": self.key,
            "status": self.status.value,
            "value": self.value,
            "description": self.description,
            "global_last_updated": _iso(self.global_last_updated),
            "local_last_updated": _iso(self.local_last_updated),
            "secret_id": self.secret_id,
        }


@dataclass
class EnvironmentSyncSummary:
    """Per-environment status counts."""

    environment_id: str
    environment_name: str
    synced: int = 0
    outdated: int = 0
    missing: int = 0

    @property
    def total(self) -> int:
        return self.synced + self.outdated + self.missing

    @property
    def is_in_sync(self) -> bool:
        """True if nothing is outdated or missing."""
        return self.outdated == 0 and self.missing == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environment_id": self.environment_id,
            "environment_name": self.environment_name,
            "synced": self.synced,
            "outdated": self.outdated,
            "missing": self.missing,
            "total": self.total,
        }


@dataclass
class CommittedSecret:
    """A value written to the session environment during commit."""

    key: str
    value: str
    secret_id: str
    version: int


@dataclass
class CommitResult:
    """What an edit session commit wrote."""

    environment_id: str
    secrets: List[CommittedSecret] = field(default_factory=list)
    descriptions: List[str] = field(default_factory=list)

    @property
    def committed_keys(self) -> List[str]:
        return [secret.key for secret in self.secrets]

    @property
    def offers_propagation(self) -> bool:
        """Only value writes can be propagated; descriptions are already global."""
        return len(self.secrets) > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environment_id": self.environment_id,
            "secrets": [
                {"key": s.key, "secret_id": s.secret_id, "version": s.version}
                for s in self.secrets
            ],
            "descriptions": list(self.descriptions),
            "offers_propagation": self.offers_propagation,
        }


@dataclass
class PropagationFailure:
    """One (environment, key) write that failed during propagation."""

    environment_id: str
    key: str
    error: str


@dataclass
class PropagationResult:
    """Aggregate outcome of a propagation batch."""

    succeeded: List[Dict[str, str]] = field(default_factory=list)
    failed: List[PropagationFailure] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return len(self.failed) == 0

    @property
    def failed_environments(self) -> List[str]:
        return sorted({failure.environment_id for failure in self.failed})

    def raise_for_failures(self) -> None:
        """Raise PropagationError if any write failed."""
        if self.failed:
            from secretsync.exceptions import PropagationError

            raise PropagationError(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [
                {"environment_id": f.environment_id, "key": f.key, "error": f.error}
                for f in self.failed
            ],
        }

    def __repr__(self) -> str:
        return f"PropagationResult(succeeded={len(self.succeeded)}, failed={len(self.failed)})"


@dataclass
class KeyComparisonRow:
    """One environment's copy of a key in a side-by-side comparison."""

    environment_id: str
    environment_name: str
    status: SyncStatus
    value: Optional[str] = None
    updated_at: Optional[datetime] = None
    version: Optional[int] = None
    is_latest: bool = False
    # Informational only; status comes from the timestamp rule
    matches_latest: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environment_id": self.environment_id,
            "environment_name": self.environment_name,
            "status": self.status.value,
            "value": self.value,
            "updated_at": _iso(self.updated_at),
            "version": self.version,
            "is_latest": self.is_latest,
            "matches_latest": self.matches_latest,
        }


@dataclass
class SearchResults:
    """Projects and secret keys matching a query."""

    projects: List[Dict[str, Any]] = field(default_factory=list)
    secrets: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.projects and not self.secrets

    def to_dict(self) -> Dict[str, Any]:
        return {"projects": self.projects, "secrets": self.secrets}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResults":
        return cls(projects=data.get("projects", []), secrets=data.get("secrets", []))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
