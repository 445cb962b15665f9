"""
secretsync Configuration

Settings are read from environment variables. A `.env` file is loaded first
(when one is found) so local setups don't need exported variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from secretsync.constants import (
    DEFAULT_CORS_ORIGINS,
    DEFAULT_DATABASE_URL,
    DEFAULT_LOG_DIR,
)


def find_env_file() -> Optional[Path]:
    """Smart .env file detection"""
    search_paths = [
        Path.cwd() / ".env",
        Path.home() / ".secretsync" / ".env",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def _split_list(raw: Optional[str], default: List[str]) -> List[str]:
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime configuration."""

    database_url: str = DEFAULT_DATABASE_URL
    redis_url: Optional[str] = None
    admin_email: Optional[str] = None
    log_dir: Path = field(default_factory=lambda: Path(DEFAULT_LOG_DIR))
    cli_user: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    env_file: Optional[Path] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from the process environment.

        Args:
            load_env_file: Load the first `.env` found before reading variables.
                Values already exported in the environment win.

        Returns:
            Settings instance
        """
        env_file = find_env_file() if load_env_file else None
        if env_file:
            load_dotenv(env_file, override=False)

        return cls(
            database_url=os.getenv("SECRETSYNC_DB_URL", DEFAULT_DATABASE_URL),
            redis_url=os.getenv("SECRETSYNC_REDIS_URL") or None,
            admin_email=os.getenv("SECRETSYNC_ADMIN_EMAIL") or None,
            log_dir=Path(os.getenv("SECRETSYNC_LOG_DIR", DEFAULT_LOG_DIR)),
            cli_user=os.getenv("SECRETSYNC_CLI_USER") or None,
            cors_origins=_split_list(
                os.getenv("SECRETSYNC_CORS_ORIGINS"), DEFAULT_CORS_ORIGINS
            ),
            env_file=env_file,
        )

    def is_admin_email(self, email: str) -> bool:
        """Check if email is the configured bootstrap admin (case-insensitive)."""
        if not self.admin_email or not email:
            return False
        return email.strip().lower() == self.admin_email.strip().lower()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get process-wide settings (loaded once)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace process-wide settings (None forces a reload on next access)."""
    global _settings
    _settings = settings
