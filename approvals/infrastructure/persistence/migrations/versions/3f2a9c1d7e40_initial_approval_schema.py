"""initial_approval_schema

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:12:44.218530

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema - locations, RBAC read models, workflows and delegations."""

    # Location tree (materialized path)
    op.create_table(
        "location",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("parent_id", sa.String(), nullable=True),
        sa.Column("path", sa.String(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["parent_id"], ["location.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("path"),
    )
    op.create_index("ix_location_parent_id", "location", ["parent_id"])
    op.create_index("ix_location_path_level", "location", ["path", "level"])

    op.create_table(
        "permission",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("module", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "role_permission",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("permission_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["permission_id"], ["permission.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )
    op.create_index("ix_role_permission_permission", "role_permission", ["permission_id"])

    op.create_table(
        "app_user",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("manager_id", sa.String(), nullable=True),
        sa.Column("primary_location_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["manager_id"], ["app_user.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["primary_location_id"], ["location.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_app_user_manager_id", "app_user", ["manager_id"])
    op.create_index("ix_app_user_primary_location_id", "app_user", ["primary_location_id"])
    op.create_index("ix_app_user_deleted_at", "app_user", ["deleted_at"])

    op.create_table(
        "user_role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column(
            "include_descendants", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["location.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_user_role_user", "user_role", ["user_id", "role_id"])
    op.create_index("ix_user_role_deleted_at", "user_role", ["deleted_at"])

    # Workflow templates and their ordered steps
    op.create_table(
        "workflow_template",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("resource_type", sa.String(), nullable=False),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["location_id"], ["location.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["app_user.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "ix_workflow_template_resource_type", "workflow_template", ["resource_type"]
    )

    op.create_table(
        "workflow_step",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("template_id", sa.String(), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("required_permission", sa.String(), nullable=False),
        sa.Column("approver_strategy", sa.String(), nullable=False),
        sa.Column("include_manager", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("required_roles", sa.JSON(), nullable=True),
        sa.Column("location_scope", sa.String(), nullable=False),
        sa.Column("conditional_rules", sa.JSON(), nullable=True),
        sa.Column("allow_decline", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_adjust", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["template_id"], ["workflow_template.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint("template_id", "step_order", name="uq_workflow_step_order"),
        sa.CheckConstraint("step_order >= 1", name="ck_workflow_step_order_positive"),
    )

    # Running instances and per-step records
    op.create_table(
        "workflow_instance",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("template_id", sa.String(), nullable=False),
        sa.Column("resource_id", sa.String(), nullable=False),
        sa.Column("resource_type", sa.String(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column("current_step_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("request_fields", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["template_id"], ["workflow_template.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["created_by"], ["app_user.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["location_id"], ["location.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "ix_workflow_instance_template_id", "workflow_instance", ["template_id"]
    )
    op.create_index("ix_workflow_instance_status", "workflow_instance", ["status"])
    op.create_index(
        "ix_workflow_instance_resource",
        "workflow_instance",
        ["resource_type", "resource_id"],
    )

    op.create_table(
        "workflow_step_instance",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("instance_id", sa.String(), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("acted_by", sa.String(), nullable=True),
        sa.Column("acted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("performed_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["instance_id"], ["workflow_instance.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["acted_by"], ["app_user.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["performed_by"], ["app_user.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("instance_id", "step_order", name="uq_step_instance_order"),
    )

    op.create_table(
        "delegation",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("delegator_user_id", sa.String(), nullable=False),
        sa.Column("delegate_user_id", sa.String(), nullable=False),
        sa.Column("permission", sa.String(), nullable=False),
        sa.Column("location_id", sa.String(), nullable=True),
        sa.Column(
            "include_descendants", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["delegator_user_id"], ["app_user.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["delegate_user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["location.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["revoked_by"], ["app_user.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["app_user.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("valid_from < valid_until", name="ck_delegation_window"),
    )
    op.create_index(
        "ix_delegation_delegate",
        "delegation",
        ["delegate_user_id", "permission", "status"],
    )
    op.create_index(
        "ix_delegation_pair",
        "delegation",
        ["delegator_user_id", "delegate_user_id", "permission"],
    )
    op.create_index("ix_delegation_status_until", "delegation", ["status", "valid_until"])


def downgrade() -> None:
    """Downgrade schema - drop all approval tables."""
    op.drop_table("delegation")
    op.drop_table("workflow_step_instance")
    op.drop_table("workflow_instance")
    op.drop_table("workflow_step")
    op.drop_table("workflow_template")
    op.drop_table("user_role")
    op.drop_table("app_user")
    op.drop_table("role_permission")
    op.drop_table("role")
    op.drop_table("permission")
    op.drop_table("location")
