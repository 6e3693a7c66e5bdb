"""Delegation API: create, list and revoke time-bounded permission delegations."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from approvals.api.v1.dependencies import (
    get_actor_id,
    get_delegation_authority,
    get_delegation_authority_for_write,
)
from approvals.infrastructure.services import DelegationAuthority
from approvals.schemas.delegation import (
    DelegationCreateRequest,
    DelegationListParams,
    DelegationResponse,
)

router = APIRouter()

Actor = Annotated[str, Depends(get_actor_id)]


@router.post("", response_model=DelegationResponse, status_code=201)
async def create_delegation(
    body: DelegationCreateRequest,
    actor_id: Actor,
    authority: Annotated[DelegationAuthority, Depends(get_delegation_authority_for_write)],
):
    """Delegate a permission for a time window (as the actor unless an admin names a delegator)."""
    result = await authority.create_delegation(
        actor_id=actor_id,
        delegator_user_id=body.delegator_user_id or actor_id,
        delegate_user_id=body.delegate_user_id,
        permission=body.permission,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        location_id=body.location_id,
        include_descendants=body.include_descendants,
        reason=body.reason,
    )
    return DelegationResponse.model_validate(result)


@router.get("", response_model=list[DelegationResponse])
async def list_delegations(
    actor_id: Actor,
    authority: Annotated[DelegationAuthority, Depends(get_delegation_authority)],
    params: Annotated[DelegationListParams, Query()],
):
    """Delegations the actor can use now (received) or has granted."""
    if params.view == "granted":
        results = await authority.list_by_delegator(
            actor_id, status=params.status, include_expired=params.include_expired
        )
    else:
        results = await authority.list_for_delegate(
            actor_id, permission=params.permission, location_id=params.location_id
        )
    return [DelegationResponse.model_validate(r) for r in results]


@router.post("/{delegation_id}/revoke", response_model=DelegationResponse)
async def revoke_delegation(
    delegation_id: str,
    actor_id: Actor,
    authority: Annotated[DelegationAuthority, Depends(get_delegation_authority_for_write)],
):
    """Revoke an active delegation (delegator or administrator)."""
    return DelegationResponse.model_validate(
        await authority.revoke_delegation(delegation_id, actor_id)
    )
