"""
Database connection and session management.

The dashboard and the CLI share the same database. The engine is created
lazily from settings so tests and tools can point it elsewhere first.
"""

from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from secretsync.config import get_settings

Base = declarative_base()

_engine: Optional[Engine] = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def configure_database(url: Optional[str] = None, engine: Optional[Engine] = None) -> Engine:
    """
    Bind the session factory to an engine.

    Args:
        url: SQLAlchemy URL (defaults to SECRETSYNC_DB_URL)
        engine: Pre-built engine (takes precedence over url)

    Returns:
        The bound engine
    """
    global _engine
    if engine is None:
        url = url or get_settings().database_url
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, connect_args=connect_args)
    _engine = engine
    SessionLocal.configure(bind=engine)
    return engine


def get_engine() -> Engine:
    """Get the bound engine, creating it from settings on first use."""
    if _engine is None:
        return configure_database()
    return _engine


def get_db_session() -> Session:
    """Get database session."""
    get_engine()
    return SessionLocal()


def get_db() -> Iterator[Session]:
    """Get database session (FastAPI dependency)."""
    db = get_db_session()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables."""
    # Register models on Base.metadata
    from secretsync.models import tables  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def check_connection() -> bool:
    """Test database connection."""
    db = get_db_session()
    try:
        db.execute(text("SELECT 1"))
        return True
    finally:
        db.close()


def upgrade_database(url: Optional[str] = None, revision: str = "head") -> None:
    """
    Apply Alembic migrations.

    Args:
        url: SQLAlchemy URL (defaults to SECRETSYNC_DB_URL)
        revision: Target revision
    """
    from alembic import command
    from alembic.config import Config

    config = Config()
    config.set_main_option("script_location", str(Path(__file__).parent / "migrations"))
    url = url or get_settings().database_url
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    command.upgrade(config, revision)
