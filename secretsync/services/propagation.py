"""
Edit Session / Propagation

A batch edit against one environment, followed by an optional, explicit
broadcast of the committed values to other environments.

    EDITING -> COMMITTING -> PROPAGATION_OFFERED -> PROPAGATING -> DONE
                         \\-> DONE  (nothing to propagate)

Drafts live only in the session until commit. Propagation is a plain
key/value broadcast that overwrites whatever the targets hold. Each
(target, key) write is independent: failures are collected, never rolled
back, and never stop the remaining writes.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from secretsync.exceptions import (
    CommitError,
    ProjectNotFoundError,
    SecretSyncError,
    StateError,
    ValidationError,
)
from secretsync.models.identity import Identity
from secretsync.models.results import (
    CommitResult,
    CommittedSecret,
    PropagationFailure,
    PropagationResult,
)
from secretsync.models.tables import Environment
from secretsync.services.access_service import AccessService
from secretsync.services.secret_service import SecretService
from secretsync.utils import validate_secret_key

logger = logging.getLogger(__name__)


def broadcast(
    secrets: SecretService,
    project_id: str,
    committed: List[CommittedSecret],
    target_environment_ids: List[str],
    actor: Optional[str] = None,
) -> PropagationResult:
    """
    Save every committed key/value into every target environment.

    Writes run one after another on the caller's session. A failed
    (target, key) write is recorded and the remaining writes still run.

    Args:
        secrets: Secret service doing the writes
        project_id: Project id
        committed: Key/value pairs to push
        target_environment_ids: Environments to write into
        actor: Label recorded on the writes

    Returns:
        PropagationResult
    """
    result = PropagationResult()
    for environment_id in target_environment_ids:
        for item in committed:
            try:
                secrets.save_secret(project_id, environment_id, item.key, item.value, actor)
                result.succeeded.append({"environment_id": environment_id, "key": item.key})
            except SecretSyncError as e:
                logger.warning(
                    "Propagation of %s to %s failed: %s", item.key, environment_id, e
                )
                result.failed.append(
                    PropagationFailure(
                        environment_id=environment_id, key=item.key, error=e.message
                    )
                )
    return result


class SessionState(str, Enum):
    """Edit session lifecycle."""

    EDITING = "EDITING"
    COMMITTING = "COMMITTING"
    PROPAGATION_OFFERED = "PROPAGATION_OFFERED"
    PROPAGATING = "PROPAGATING"
    DONE = "DONE"


class EditSession:
    """
    Batch edit of one environment with optional propagation.

    Example:
        session = EditSession(secrets, project_id, env_id, identity)
        session.stage_value(secret_id, "postgres://new")
        session.stage_description("DATABASE_URL", "Primary database")
        result = session.commit()
        if result.offers_propagation:
            session.propagate([staging_id, production_id])
    """

    def __init__(
        self,
        secrets: SecretService,
        project_id: str,
        environment_id: str,
        identity: Optional[Identity] = None,
    ):
        self.secrets = secrets
        self.store = secrets.store
        self.project_id = project_id
        self.environment_id = environment_id
        self.identity = identity
        self.access = AccessService(self.store)

        self.state = SessionState.EDITING
        self.value_drafts: Dict[str, str] = {}
        self.new_drafts: Dict[str, str] = {}
        self.description_drafts: Dict[str, str] = {}
        self.commit_result: Optional[CommitResult] = None
        self.propagation_result: Optional[PropagationResult] = None

        if self.store.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)
        self.secrets.require_environment(project_id, environment_id)

    @property
    def actor(self) -> Optional[str]:
        return self.identity.actor if self.identity else None

    @property
    def has_changes(self) -> bool:
        return bool(self.value_drafts or self.new_drafts or self.description_drafts)

    def _require_state(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise StateError(
                f"Operation not allowed in state {self.state.value}",
                context=f"Allowed in: {allowed}",
            )

    # ------------------------------------------------------------------
    # EDITING
    # ------------------------------------------------------------------

    def stage_value(self, secret_id: str, value: str) -> None:
        """
        Draft a new value for a secret of the session environment.

        Drafting the value already stored drops the draft.
        """
        self._require_state(SessionState.EDITING)
        if value is None:
            raise ValidationError("Draft value is required")
        secret = self.secrets.get_secret(secret_id)
        if secret.environment_id != self.environment_id:
            raise ValidationError(
                f"Secret {secret.key} does not belong to the environment being edited"
            )

        if value == secret.value:
            self.value_drafts.pop(secret_id, None)
        else:
            self.value_drafts[secret_id] = value

    def stage_new(self, key: str, value: str) -> None:
        """
        Draft a key the session environment does not have yet.

        Raises:
            ValidationError: Bad key, None value, or the key already exists
                in this environment (stage its secret id instead)
        """
        self._require_state(SessionState.EDITING)
        validate_secret_key(key)
        if value is None:
            raise ValidationError(f"Value for '{key}' is required")
        if self.store.find_secret(self.project_id, self.environment_id, key) is not None:
            raise ValidationError(f"{key} already exists in the environment being edited")
        self.new_drafts[key] = value

    def stage_description(self, key: str, description: str) -> None:
        """
        Draft a new shared description for a key.

        Drafting the description already stored drops the draft.
        """
        self._require_state(SessionState.EDITING)
        validate_secret_key(key)
        description = description or ""
        entry = self.secrets.registry.get_entry(self.project_id, key)
        current = entry.description if entry else ""

        if description == current:
            self.description_drafts.pop(key, None)
        else:
            self.description_drafts[key] = description

    def discard(self) -> None:
        """Drop all drafts."""
        self._require_state(SessionState.EDITING)
        self.value_drafts.clear()
        self.new_drafts.clear()
        self.description_drafts.clear()

    # ------------------------------------------------------------------
    # COMMITTING
    # ------------------------------------------------------------------

    def commit(self) -> CommitResult:
        """
        Persist drafts to the session environment.

        Values are saved first, then descriptions. Every draft is checked
        before the first write, so a bad draft fails with nothing saved. A
        storage failure during the writes stops the commit and raises
        CommitError carrying what already landed.

        Returns:
            CommitResult; offers_propagation is True when any value was written
        """
        self._require_state(SessionState.EDITING)
        keys = self._check_drafts()
        self.state = SessionState.COMMITTING
        result = CommitResult(environment_id=self.environment_id)
        self.commit_result = result

        try:
            for secret_id, value in self.value_drafts.items():
                result.secrets.append(self._save(keys[secret_id], value))
            for key, value in self.new_drafts.items():
                result.secrets.append(self._save(key, value))

            for key, description in self.description_drafts.items():
                self.secrets.registry.update_description(self.project_id, key, description)
                result.descriptions.append(key)
        except SecretSyncError as e:
            self._finish()
            raise CommitError(f"Commit failed: {e.message}", result, e) from e

        self.value_drafts.clear()
        self.new_drafts.clear()
        self.description_drafts.clear()

        if result.offers_propagation:
            self.state = SessionState.PROPAGATION_OFFERED
        else:
            self._finish()
        return result

    def _check_drafts(self) -> Dict[str, str]:
        """
        Re-check every draft against current storage.

        Returns:
            Key of each value draft by secret id

        Raises:
            NotFoundError: A drafted secret was deleted since staging
            ValidationError: Bad key, or a draft that no longer fits the
                session environment
        """
        keys = {}
        for secret_id in self.value_drafts:
            secret = self.secrets.get_secret(secret_id)
            if secret.environment_id != self.environment_id:
                raise ValidationError(
                    f"Secret {secret.key} does not belong to the environment being edited"
                )
            keys[secret_id] = secret.key
        for key in self.new_drafts:
            validate_secret_key(key)
            if self.store.find_secret(self.project_id, self.environment_id, key) is not None:
                raise ValidationError(f"{key} already exists in the environment being edited")
        for key in self.description_drafts:
            validate_secret_key(key)
        return keys

    def _save(self, key: str, value: str) -> CommittedSecret:
        saved = self.secrets.save_secret(
            self.project_id, self.environment_id, key, value, self.actor
        )
        return CommittedSecret(
            key=key, value=value, secret_id=saved.id, version=saved.version
        )

    # ------------------------------------------------------------------
    # PROPAGATION_OFFERED / PROPAGATING
    # ------------------------------------------------------------------

    def propagation_targets(self) -> List[Environment]:
        """Other environments of the project the committed values can go to."""
        self._require_state(SessionState.PROPAGATION_OFFERED)
        if self.identity is not None:
            environments = self.access.visible_environments(self.project_id, self.identity)
        else:
            environments = self.store.list_environments(self.project_id)
        return [env for env in environments if env.id != self.environment_id]

    def propagate(self, target_environment_ids: List[str]) -> PropagationResult:
        """
        Broadcast every committed value to the chosen environments.

        Targets are validated before any write. Each (target, key) save is
        independent; failures are collected in the result.

        Returns:
            PropagationResult
        """
        self._require_state(SessionState.PROPAGATION_OFFERED)

        allowed = {env.id for env in self.propagation_targets()}
        targets = list(dict.fromkeys(target_environment_ids))
        invalid = [env_id for env_id in targets if env_id not in allowed]
        if invalid:
            raise ValidationError(
                "Invalid propagation target(s)", context=", ".join(invalid)
            )

        self.state = SessionState.PROPAGATING
        result = broadcast(
            self.secrets, self.project_id, self.commit_result.secrets, targets, self.actor
        )
        self.propagation_result = result
        self._finish()
        return result

    def skip(self) -> None:
        """Close the propagation offer without writing anything."""
        self._require_state(SessionState.PROPAGATION_OFFERED)
        self._finish()

    def _finish(self) -> None:
        self.value_drafts.clear()
        self.new_drafts.clear()
        self.description_drafts.clear()
        self.state = SessionState.DONE
