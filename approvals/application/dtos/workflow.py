"""DTOs for workflow resolution and execution (no dependency on ORM)."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from approvals.domain.enums import InstanceStatus, StepAction, StepStatus


@dataclass(frozen=True)
class ResolutionContext:
    """Run-time inputs for approver resolution.

    fields carries request attributes read by conditional rules
    (e.g. requested days or amount).
    """

    creator_id: str
    instance_id: str | None
    location_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowChangeEvent:
    """State-change payload consumed by audit and notification collaborators."""

    instance_id: str
    step_order: int
    action: StepAction
    actor_id: str
    comment: str | None
    timestamp: datetime
    performed_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "step_order": self.step_order,
            "action": self.action.value,
            "actor_id": self.actor_id,
            "comment": self.comment,
            "timestamp": self.timestamp.isoformat(),
            "performed_by": self.performed_by,
        }


@dataclass(frozen=True)
class AutoRunResult:
    """Outcome of a completed auto-run."""

    instance_id: str
    steps_performed: int
    status: InstanceStatus
    current_step_order: int
    approvers: tuple[str, ...] = ()


@dataclass(frozen=True)
class StepReadModel:
    """One template step as seen by a UI (status is pending until materialized)."""

    step_order: int
    status: StepStatus
    resolved_approvers: tuple[str, ...]
    acted_by: str | None
    acted_at: datetime | None
    comment: str | None
    performed_by: str | None = None


@dataclass(frozen=True)
class WorkflowReadModel:
    """Workflow instance read-model for UI rendering."""

    instance_id: str
    status: InstanceStatus
    current_step_order: int
    version: int
    steps: list[StepReadModel]


@dataclass(frozen=True)
class TransitionResult:
    """Instance state after a committed transition, with the event it produced."""

    instance_id: str
    status: InstanceStatus
    current_step_order: int
    version: int
    event: WorkflowChangeEvent | None = None


@dataclass(frozen=True)
class PendingApproval:
    """An instance under review whose current step resolves the asking user."""

    instance_id: str
    template_id: str
    template_name: str
    resource_type: str
    resource_id: str
    creator_id: str
    current_step_order: int
    total_steps: int
    required_permission: str
    version: int
    created_at: datetime | None


@dataclass(frozen=True)
class StepPreview:
    """Who a template step would resolve to for a given creator."""

    step_order: int
    required_permission: str
    resolved_approvers: tuple[str, ...]
