"""Workflow API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from approvals.domain.enums import InstanceStatus, ResourceType, StepAction, StepStatus
from approvals.domain.step_config import StepConfig


class TemplateCreateRequest(BaseModel):
    """Request body for creating a workflow template."""

    name: str = Field(..., min_length=1, max_length=255)
    resource_type: ResourceType
    location_id: str | None = None
    steps: list[StepConfig] = Field(..., min_length=1)


class TemplateResponse(BaseModel):
    """Workflow template response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    resource_type: str
    location_id: str | None
    status: str
    version: int


class InstanceStartRequest(BaseModel):
    """Request body for starting a workflow instance on a resource."""

    template_id: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)
    resource_type: ResourceType
    fields: dict[str, Any] | None = Field(
        default=None, description="Request attributes read by conditional rules"
    )


class ApproveRequest(BaseModel):
    step_order: int = Field(..., ge=1)
    comment: str | None = Field(default=None, max_length=4000)
    expected_version: int | None = Field(default=None, ge=1)


class DeclineRequest(BaseModel):
    step_order: int = Field(..., ge=1)
    comment: str = Field(..., min_length=1, max_length=4000)
    expected_version: int | None = Field(default=None, ge=1)


class RouteBackRequest(BaseModel):
    target_step_order: int = Field(..., ge=0, description="0 returns the request to its creator")
    comment: str = Field(..., min_length=1, max_length=4000)
    expected_version: int | None = Field(default=None, ge=1)


class ResubmitRequest(BaseModel):
    expected_version: int | None = Field(default=None, ge=1)


class AutoRunRequest(BaseModel):
    max_steps: int | None = Field(default=None, ge=1)


class ChangeEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    instance_id: str
    step_order: int
    action: StepAction
    actor_id: str
    comment: str | None
    timestamp: datetime
    performed_by: str | None = None


class TransitionResponse(BaseModel):
    """Instance state after a transition."""

    model_config = ConfigDict(from_attributes=True)

    instance_id: str
    status: InstanceStatus
    current_step_order: int
    version: int
    event: ChangeEventResponse | None = None


class AutoRunResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    instance_id: str
    steps_performed: int
    status: InstanceStatus
    current_step_order: int
    approvers: list[str]


class StepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step_order: int
    status: StepStatus
    resolved_approvers: list[str]
    acted_by: str | None
    acted_at: datetime | None
    comment: str | None
    performed_by: str | None


class WorkflowReadResponse(BaseModel):
    """Workflow instance read model: status plus every template step."""

    model_config = ConfigDict(from_attributes=True)

    instance_id: str
    status: InstanceStatus
    current_step_order: int
    version: int
    steps: list[StepResponse]


class PendingApprovalResponse(BaseModel):
    """An instance awaiting the caller's approval at its current step."""

    model_config = ConfigDict(from_attributes=True)

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


class ApproverPreviewRequest(BaseModel):
    """Sample creator (and request attributes) to resolve a template's steps for."""

    creator_id: str = Field(..., min_length=1)
    fields: dict[str, Any] | None = None


class StepPreviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step_order: int
    required_permission: str
    resolved_approvers: list[str]
