"""
secretsync Utilities

Time, identifier, slug and key helpers shared by the services.
"""

import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from secretsync.constants import (
    ERROR_INVALID_KEY,
    SECRET_KEY_PATTERN,
    SENSITIVE_KEYWORDS,
)
from secretsync.exceptions import ValidationError

_KEY_RE = re.compile(SECRET_KEY_PATTERN)


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MonotonicClock:
    """
    Wall clock that never repeats or goes backwards within a process.

    Two writes in the same microsecond would otherwise share a timestamp,
    and the sync evaluator treats equal timestamps as SYNCED.
    """

    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = utcnow()
            if self._last is not None and now <= self._last:
                now = self._last + timedelta(microseconds=1)
            self._last = now
            return now


def new_id() -> str:
    """Generate a new entity id."""
    return str(uuid.uuid4())


def slugify(name: str) -> str:
    """
    Derive a URL-safe slug from a display name.

    Args:
        name: Display name (e.g. "Growth Platform")

    Returns:
        Slug (e.g. "growth-platform")
    """
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


def is_valid_secret_key(key: str) -> bool:
    """Check if key matches [A-Z0-9_]+ in full."""
    return bool(key) and _KEY_RE.fullmatch(key) is not None


def validate_secret_key(key: str) -> str:
    """
    Validate a secret key.

    Raises:
        ValidationError: If key is empty or not [A-Z0-9_]+
    """
    if not isinstance(key, str) or not is_valid_secret_key(key):
        raise ValidationError(
            ERROR_INVALID_KEY.format(key=key),
            context="Keys must be uppercase letters, digits or underscores",
        )
    return key


def is_sensitive_key(key: str) -> bool:
    """Check if key name suggests a sensitive value."""
    return any(keyword in key.upper() for keyword in SENSITIVE_KEYWORDS)


def mask_value(key: str, value: Optional[str]) -> str:
    """Mask a sensitive value for display."""
    if value is None:
        return "-"
    if is_sensitive_key(key):
        if len(value) > 8:
            return f"{value[:4]}...{value[-4:]}"
        return "***"
    # Truncate long values
    return value[:60] + "..." if len(value) > 60 else value
