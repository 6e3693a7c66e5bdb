"""Workflow template, instance and step-instance repositories."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.domain.enums import InstanceStatus, StepStatus, TemplateStatus
from approvals.domain.exceptions import NotFoundError, ValidationError
from approvals.domain.step_config import StepConfig, validate_step_orders
from approvals.infrastructure.persistence.models.workflow import (
    WorkflowInstance,
    WorkflowStep,
    WorkflowStepInstance,
    WorkflowTemplate,
)
from approvals.infrastructure.persistence.repositories.base import BaseRepository
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class WorkflowTemplateRepository(BaseRepository[WorkflowTemplate]):
    """Templates and their step configurations."""

    resource_type = "workflow_template"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowTemplate)

    async def create_template(
        self,
        name: str,
        resource_type: str,
        steps: list[StepConfig],
        *,
        location_id: str | None = None,
        created_by: str | None = None,
    ) -> WorkflowTemplate:
        """Create a template with validated steps.

        Raises:
            ValidationError: If steps is empty or step_order values are not 1..n.
        """
        if not steps:
            raise ValidationError("Template must have at least one step", field="steps")
        if not validate_step_orders([s.step_order for s in steps]):
            raise ValidationError(
                "step_order values must be contiguous ascending from 1",
                field="steps",
                step_orders=sorted(s.step_order for s in steps),
            )
        template = await self.create(
            WorkflowTemplate(
                name=name,
                resource_type=resource_type,
                location_id=location_id,
                status=TemplateStatus.ACTIVE.value,
                created_by=created_by,
            )
        )
        for step in sorted(steps, key=lambda s: s.step_order):
            self.db.add(WorkflowStep(template_id=template.id, **step.to_columns()))
        await self.db.flush()
        logger.info(
            "Workflow template created: id=%s resource_type=%s steps=%d",
            template.id,
            resource_type,
            len(steps),
        )
        return template

    async def get_steps(self, template_id: str) -> list[WorkflowStep]:
        """Step rows of a template ordered by step_order."""
        result = await self.db.execute(
            select(WorkflowStep)
            .where(WorkflowStep.template_id == template_id)
            .order_by(WorkflowStep.step_order.asc())
        )
        return list(result.scalars().all())

    async def get_step_config(self, template_id: str, step_order: int) -> StepConfig:
        """Validated configuration of one step.

        Raises:
            NotFoundError: If the template has no such step.
        """
        result = await self.db.execute(
            select(WorkflowStep).where(
                WorkflowStep.template_id == template_id,
                WorkflowStep.step_order == step_order,
            )
        )
        step = result.scalar_one_or_none()
        if step is None:
            raise NotFoundError("workflow_step", f"{template_id}#{step_order}")
        return step.to_config()

    async def count_steps(self, template_id: str) -> int:
        return len(await self.get_steps(template_id))


class WorkflowInstanceRepository(BaseRepository[WorkflowInstance]):
    """Workflow instances. All state transitions go through transition()."""

    resource_type = "workflow_instance"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowInstance)

    async def list_under_review(self) -> list[WorkflowInstance]:
        """Every UnderReview instance, newest first."""
        result = await self.db.execute(
            select(WorkflowInstance)
            .where(WorkflowInstance.status == InstanceStatus.UNDER_REVIEW.value)
            .order_by(WorkflowInstance.created_at.desc(), WorkflowInstance.id)
        )
        return list(result.scalars().all())

    async def transition(
        self,
        instance: WorkflowInstance,
        *,
        expected_status: InstanceStatus,
        **values: Any,
    ) -> bool:
        """Apply values iff the row still has the status, step and version read into instance.

        Bumps version. Returns False when another writer got there first; the
        caller turns that into a ConflictError. On success instance is refreshed.
        """
        result = await self.db.execute(
            update(WorkflowInstance)
            .where(
                WorkflowInstance.id == instance.id,
                WorkflowInstance.status == expected_status.value,
                WorkflowInstance.current_step_order == instance.current_step_order,
                WorkflowInstance.version == instance.version,
            )
            .values(version=WorkflowInstance.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.db.refresh(instance)
        return True


class WorkflowStepInstanceRepository(BaseRepository[WorkflowStepInstance]):
    """Per-step execution records, materialized lazily as steps become current."""

    resource_type = "workflow_step_instance"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowStepInstance)

    async def get(self, instance_id: str, step_order: int) -> WorkflowStepInstance | None:
        result = await self.db.execute(
            select(WorkflowStepInstance).where(
                WorkflowStepInstance.instance_id == instance_id,
                WorkflowStepInstance.step_order == step_order,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_instance(self, instance_id: str) -> list[WorkflowStepInstance]:
        result = await self.db.execute(
            select(WorkflowStepInstance)
            .where(WorkflowStepInstance.instance_id == instance_id)
            .order_by(WorkflowStepInstance.step_order.asc())
        )
        return list(result.scalars().all())

    async def materialize(self, instance_id: str, step_order: int) -> WorkflowStepInstance:
        """Return the pending step instance for step_order, creating or resetting it."""
        existing = await self.get(instance_id, step_order)
        if existing is None:
            return await self.create(
                WorkflowStepInstance(
                    instance_id=instance_id,
                    step_order=step_order,
                    status=StepStatus.PENDING.value,
                )
            )
        if existing.status != StepStatus.PENDING.value:
            await self.reset_from(instance_id, step_order, through=step_order)
            await self.db.refresh(existing)
        return existing

    async def record_action(
        self,
        instance_id: str,
        step_order: int,
        *,
        status: StepStatus,
        acted_by: str,
        acted_at: datetime,
        comment: str | None,
        performed_by: str | None = None,
    ) -> bool:
        """Move a pending step instance to status. Returns False if it was not pending."""
        result = await self.db.execute(
            update(WorkflowStepInstance)
            .where(
                WorkflowStepInstance.instance_id == instance_id,
                WorkflowStepInstance.step_order == step_order,
                WorkflowStepInstance.status == StepStatus.PENDING.value,
            )
            .values(
                status=status.value,
                acted_by=acted_by,
                acted_at=acted_at,
                comment=comment,
                performed_by=performed_by,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def reset_from(
        self, instance_id: str, step_order: int, *, through: int | None = None
    ) -> int:
        """Reset step instances with step_order >= step_order (optionally <= through) to pending."""
        q = update(WorkflowStepInstance).where(
            WorkflowStepInstance.instance_id == instance_id,
            WorkflowStepInstance.step_order >= step_order,
        )
        if through is not None:
            q = q.where(WorkflowStepInstance.step_order <= through)
        result = await self.db.execute(
            q.values(
                status=StepStatus.PENDING.value,
                acted_by=None,
                acted_at=None,
                comment=None,
                performed_by=None,
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount
