"""Workflow API: thin routes delegating to WorkflowEngine.

Every action takes the acting user from the gateway header; state checks,
authorization and concurrency are decided by the engine.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from approvals.api.v1.dependencies import (
    get_actor_id,
    get_template_repo_for_write,
    get_workflow_engine,
    require_admin,
)
from approvals.infrastructure.persistence.repositories import WorkflowTemplateRepository
from approvals.infrastructure.services import WorkflowEngine
from approvals.schemas.workflow import (
    ApproveRequest,
    ApproverPreviewRequest,
    AutoRunRequest,
    AutoRunResponse,
    DeclineRequest,
    InstanceStartRequest,
    PendingApprovalResponse,
    ResubmitRequest,
    RouteBackRequest,
    StepPreviewResponse,
    TemplateCreateRequest,
    TemplateResponse,
    TransitionResponse,
    WorkflowReadResponse,
)

router = APIRouter()

Actor = Annotated[str, Depends(get_actor_id)]
Engine = Annotated[WorkflowEngine, Depends(get_workflow_engine)]


@router.post("/templates", response_model=TemplateResponse, status_code=201)
async def create_template(
    body: TemplateCreateRequest,
    admin_id: Annotated[str, Depends(require_admin)],
    templates: Annotated[WorkflowTemplateRepository, Depends(get_template_repo_for_write)],
):
    """Create a workflow template with its ordered steps (administrators only)."""
    template = await templates.create_template(
        body.name,
        body.resource_type.value,
        body.steps,
        location_id=body.location_id,
        created_by=admin_id,
    )
    return TemplateResponse.model_validate(template)


@router.post(
    "/templates/{template_id}/preview-approvers", response_model=list[StepPreviewResponse]
)
async def preview_approvers(
    template_id: str,
    body: ApproverPreviewRequest,
    _admin: Annotated[str, Depends(require_admin)],
    engine: Engine,
):
    """Who each step would resolve to if creator_id started this template now."""
    previews = await engine.preview_approvers(template_id, body.creator_id, body.fields)
    return [StepPreviewResponse.model_validate(p) for p in previews]


@router.post("/instances", response_model=TransitionResponse, status_code=201)
async def start_instance(body: InstanceStartRequest, actor_id: Actor, engine: Engine):
    """Start a workflow on a resource; the actor becomes the creator."""
    result = await engine.start_instance(
        body.template_id,
        body.resource_id,
        body.resource_type.value,
        actor_id,
        fields=body.fields,
    )
    return TransitionResponse.model_validate(result)


@router.get("/instances/pending", response_model=list[PendingApprovalResponse])
async def list_pending(actor_id: Actor, engine: Engine):
    """Instances whose current step lists the actor among its resolved approvers."""
    return [
        PendingApprovalResponse.model_validate(p)
        for p in await engine.list_pending_for(actor_id)
    ]


@router.get("/instances/{instance_id}", response_model=WorkflowReadResponse)
async def get_instance(instance_id: str, _actor: Actor, engine: Engine):
    """Read model: status, current step and resolved approvers per step."""
    return WorkflowReadResponse.model_validate(await engine.get_read_model(instance_id))


@router.post("/instances/{instance_id}/approve", response_model=TransitionResponse)
async def approve_step(instance_id: str, body: ApproveRequest, actor_id: Actor, engine: Engine):
    result = await engine.approve_step(
        instance_id,
        body.step_order,
        actor_id,
        body.comment,
        expected_version=body.expected_version,
    )
    return TransitionResponse.model_validate(result)


@router.post("/instances/{instance_id}/decline", response_model=TransitionResponse)
async def decline_step(instance_id: str, body: DeclineRequest, actor_id: Actor, engine: Engine):
    result = await engine.decline_step(
        instance_id,
        body.step_order,
        actor_id,
        body.comment,
        expected_version=body.expected_version,
    )
    return TransitionResponse.model_validate(result)


@router.post("/instances/{instance_id}/route-back", response_model=TransitionResponse)
async def route_back(instance_id: str, body: RouteBackRequest, actor_id: Actor, engine: Engine):
    """Send the instance back to an earlier step (0 = back to the creator)."""
    result = await engine.route_back(
        instance_id,
        body.target_step_order,
        actor_id,
        body.comment,
        expected_version=body.expected_version,
    )
    return TransitionResponse.model_validate(result)


@router.post("/instances/{instance_id}/resubmit", response_model=TransitionResponse)
async def resubmit(instance_id: str, body: ResubmitRequest, actor_id: Actor, engine: Engine):
    result = await engine.resubmit(
        instance_id, actor_id, expected_version=body.expected_version
    )
    return TransitionResponse.model_validate(result)


@router.post("/instances/{instance_id}/auto-run", response_model=AutoRunResponse)
async def auto_run(instance_id: str, body: AutoRunRequest, actor_id: Actor, engine: Engine):
    """Approve successive steps as resolved approvers (operators with the auto-run permission)."""
    result = await engine.auto_run(instance_id, actor_id, max_steps=body.max_steps)
    return AutoRunResponse.model_validate(result)
