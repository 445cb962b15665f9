"""Create secrets and project_secret_registry tables

Revision ID: 20261019090002
Revises: 20261019090001
Create Date: 2026-10-19 09:00:02

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019090002"
down_revision = "20261019090001"
branch_labels = None
depends_on = None


def upgrade():
    """Create per-environment secrets and the per-project key registry."""
    op.create_table(
        "secrets",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("environment_id", sa.String(length=36), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("last_changed_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["environment_id"], ["environments.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "environment_id", "key", name="uix_secret"),
    )
    op.create_index(op.f("ix_secrets_project_id"), "secrets", ["project_id"], unique=False)
    op.create_index(
        op.f("ix_secrets_environment_id"), "secrets", ["environment_id"], unique=False
    )
    op.create_index(op.f("ix_secrets_key"), "secrets", ["key"], unique=False)

    op.create_table(
        "project_secret_registry",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("last_updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "key", name="uix_registry_key"),
    )
    op.create_index(
        op.f("ix_project_secret_registry_project_id"),
        "project_secret_registry",
        ["project_id"],
        unique=False,
    )


def downgrade():
    """Drop secrets and registry tables."""
    op.drop_index(
        op.f("ix_project_secret_registry_project_id"),
        table_name="project_secret_registry",
    )
    op.drop_table("project_secret_registry")
    op.drop_index(op.f("ix_secrets_key"), table_name="secrets")
    op.drop_index(op.f("ix_secrets_environment_id"), table_name="secrets")
    op.drop_index(op.f("ix_secrets_project_id"), table_name="secrets")
    op.drop_table("secrets")
