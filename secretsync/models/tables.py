"""SQLAlchemy database models."""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from secretsync.database import Base
from secretsync.utils import new_id, utcnow


class MemberStatus(str, enum.Enum):
    """Project membership status."""

    INVITED = "INVITED"
    ACTIVE = "ACTIVE"


class AuditAction(str, enum.Enum):
    """Mutating operations recorded in the audit log."""

    SECRET_UPDATE = "SECRET_UPDATE"
    SECRET_DELETE = "SECRET_DELETE"
    SECRET_SYNC = "SECRET_SYNC"
    MEMBER_ADD = "MEMBER_ADD"
    MEMBER_UPDATE = "MEMBER_UPDATE"
    MEMBER_REMOVE = "MEMBER_REMOVE"


class Project(Base):
    """Project model - owns a set of environments."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow)
    deleted_at = Column(DateTime, nullable=True)  # soft delete

    # Relationships
    environments = relationship(
        "Environment",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Environment.created_at",
    )

    def __repr__(self) -> str:
        return f"Project(slug={self.slug})"


class Environment(Base):
    """Environment model (development, staging, production, previews...)."""

    __tablename__ = "environments"
    __table_args__ = (
        UniqueConstraint("project_id", "slug", name="uix_project_environment"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    is_production = Column(Boolean, nullable=False, default=False)
    # Hierarchical environments, e.g. preview-of-staging
    parent_id = Column(
        String(36), ForeignKey("environments.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    project = relationship("Project", back_populates="environments")
    secrets = relationship(
        "Secret", back_populates="environment", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"Environment(slug={self.slug}, project_id={self.project_id})"


class Secret(Base):
    """One environment's copy of a secret key."""

    __tablename__ = "secrets"
    __table_args__ = (
        UniqueConstraint("project_id", "environment_id", "key", name="uix_secret"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    environment_id = Column(
        String(36),
        ForeignKey("environments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key = Column(String(255), nullable=False, index=True)
    value = Column(Text, nullable=False)  # Empty string is a legal value
    version = Column(Integer, nullable=False, default=1)
    # Set explicitly on every value write and on mark-synced
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    last_changed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    environment = relationship("Environment", back_populates="secrets")

    def __repr__(self) -> str:
        return f"Secret(key={self.key}, environment_id={self.environment_id}, v{self.version})"


class RegistryEntry(Base):
    """Project-wide canonical record of a key: description and watermark."""

    __tablename__ = "project_secret_registry"
    __table_args__ = (
        UniqueConstraint("project_id", "key", name="uix_registry_key"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    # Watermark: last value write to this key in any environment
    last_updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"RegistryEntry(key={self.key}, last_updated_at={self.last_updated_at})"


class User(Base):
    """Registered user."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class ProjectMember(Base):
    """Per-project access grant for a non-admin user (or a pending invite)."""

    __tablename__ = "project_members"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )  # NULL while the invited email has not registered
    invite_email = Column(String(255), nullable=False)
    environments = Column(JSON, nullable=False, default=list)  # environment ids
    status = Column(String(20), nullable=False, default=MemberStatus.INVITED.value)
    has_permission = Column(Boolean, nullable=False, default=True)
    invited_by = Column(String(255), nullable=True)
    invited_at = Column(DateTime, default=utcnow)

    user = relationship("User")


class AuditLogEntry(Base):
    """Append-only audit trail of mutating operations."""

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    environment_id = Column(String(36), nullable=True, index=True)  # NULL = project-level
    action = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(36), nullable=True, index=True)
    description = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
    performed_by = Column(String(255), nullable=True)
