"""
secretsync Exception Hierarchy

Clean exception hierarchy for consistent error handling across the
services, the dashboard API and the CLI.
"""

from typing import Optional


class SecretSyncError(Exception):
    """Base exception for all secretsync errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ValidationError(SecretSyncError):
    """Raised when input is malformed. Nothing has been written."""

    pass


class NotFoundError(SecretSyncError):
    """Raised when a referenced project, environment, secret or member is missing."""

    pass


class ConflictError(SecretSyncError):
    """Raised when an entity already exists (duplicate slug, member, user)."""

    pass


class StorageError(SecretSyncError):
    """Raised when the storage backend is unreachable or rejects a write."""

    pass


class StateError(SecretSyncError):
    """Raised when an edit session operation is called in the wrong state."""

    pass


class CommitError(SecretSyncError):
    """Raised when a batch commit fails partway; carries what landed."""

    def __init__(self, message: str, result, cause: Exception):
        self.result = result
        self.cause = cause
        landed = ", ".join(result.committed_keys) or "none"
        super().__init__(message, context=f"Committed before failure: {landed}")


class PropagationError(SecretSyncError):
    """Raised when one or more propagation writes failed."""

    def __init__(self, result):
        self.result = result
        failed = ", ".join(
            f"{failure.environment_id}:{failure.key}" for failure in result.failed
        )
        message = f"Propagation failed for {len(result.failed)} write(s)"
        super().__init__(message, context=f"Failed: {failed}")


class SecretNotFoundError(NotFoundError):
    """Raised when a secret id does not exist."""

    def __init__(self, secret_id: str):
        self.secret_id = secret_id
        super().__init__(f"Secret '{secret_id}' not found")


class ProjectNotFoundError(NotFoundError):
    """Raised when a project id or slug does not exist."""

    def __init__(self, project: str):
        self.project = project
        super().__init__(f"Project '{project}' not found")


class EnvironmentNotFoundError(NotFoundError):
    """Raised when an environment does not exist in a project."""

    def __init__(self, environment: str, available: Optional[list[str]] = None):
        self.environment = environment
        self.available = available or []
        context = None
        if self.available:
            context = f"Available environments: {', '.join(self.available)}"
        super().__init__(f"Environment '{environment}' not found", context)
