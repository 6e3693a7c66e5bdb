"""Workflow template, step, instance and step-instance ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import (
    InstanceStatus,
    LocationScope,
    StepStatus,
    TemplateStatus,
)
from approvals.domain.step_config import StepConfig
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import (
    TimestampedModel,
    VersionedMixin,
)


class WorkflowTemplate(TimestampedModel, VersionedMixin, Base):
    """Workflow template. Table: workflow_template.

    location_id is the workflow location; when null the creator's primary
    location is used.
    """

    __tablename__ = "workflow_template"

    name: Mapped[str] = mapped_column(String, nullable=False)
    resource_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    location_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("location.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TemplateStatus.ACTIVE.value
    )
    created_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )


class WorkflowStep(TimestampedModel, Base):
    """Step configuration. Table: workflow_step. Unique (template_id, step_order).

    Rows are written only from a validated StepConfig (see to_config).
    """

    __tablename__ = "workflow_step"

    template_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_template.id", ondelete="CASCADE"),
        nullable=False,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    required_permission: Mapped[str] = mapped_column(String, nullable=False)
    approver_strategy: Mapped[str] = mapped_column(String, nullable=False)
    include_manager: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    required_roles: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    location_scope: Mapped[str] = mapped_column(
        String, nullable=False, default=LocationScope.ALL.value
    )
    conditional_rules: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True
    )
    allow_decline: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    allow_adjust: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )

    __table_args__ = (
        UniqueConstraint("template_id", "step_order", name="uq_workflow_step_order"),
        CheckConstraint("step_order >= 1", name="ck_workflow_step_order_positive"),
    )

    def to_config(self) -> StepConfig:
        return StepConfig.from_columns(
            step_order=self.step_order,
            required_permission=self.required_permission,
            approver_strategy=self.approver_strategy,
            include_manager=self.include_manager,
            required_roles=self.required_roles,
            location_scope=self.location_scope,
            conditional_rules=self.conditional_rules,
            allow_decline=self.allow_decline,
            allow_adjust=self.allow_adjust,
        )


class WorkflowInstance(TimestampedModel, VersionedMixin, Base):
    """Workflow instance. Table: workflow_instance.

    version increments on every transition; the transition UPDATE is keyed on
    (id, status, current_step_order, version).
    """

    __tablename__ = "workflow_instance"

    template_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_template.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[str] = mapped_column(String, nullable=False)
    resource_type: Mapped[str] = mapped_column(String, nullable=False)
    created_by: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="RESTRICT"), nullable=False
    )
    location_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("location.id", ondelete="SET NULL"), nullable=True
    )
    current_step_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=InstanceStatus.UNDER_REVIEW.value, index=True
    )
    request_fields: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_workflow_instance_resource", "resource_type", "resource_id"),
    )


class WorkflowStepInstance(TimestampedModel, Base):
    """Per-step execution record. Table: workflow_step_instance.

    acted_by is the approver of record; performed_by is the operator that
    triggered an automated action (null for direct actions).
    """

    __tablename__ = "workflow_step_instance"

    instance_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_instance.id", ondelete="CASCADE"),
        nullable=False,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=StepStatus.PENDING.value
    )
    acted_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )
    acted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("instance_id", "step_order", name="uq_step_instance_order"),
    )
