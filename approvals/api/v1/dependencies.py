"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
The workflow engine owns its own transactions and lives on app.state;
delegation and template operations share the request's session.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.core.config import get_settings
from approvals.domain.exceptions import AuthorizationError
from approvals.infrastructure.cache.cache_protocol import CacheProtocol
from approvals.infrastructure.persistence.database import get_db, get_db_transactional
from approvals.infrastructure.persistence.repositories import WorkflowTemplateRepository
from approvals.infrastructure.services import (
    DelegationAuthority,
    LocationHierarchy,
    WorkflowEngine,
)


def get_actor_id(request: Request) -> str:
    """Acting user id from the header set by the authenticating gateway."""
    header = get_settings().actor_header_name
    actor_id = request.headers.get(header)
    if not actor_id or not actor_id.strip():
        raise HTTPException(status_code=401, detail=f"{header} header is required")
    return actor_id.strip()


def get_cache(request: Request) -> CacheProtocol:
    return request.app.state.cache


def get_workflow_engine(request: Request) -> WorkflowEngine:
    return request.app.state.workflow_engine


async def get_delegation_authority(
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheProtocol, Depends(get_cache)],
) -> DelegationAuthority:
    """DelegationAuthority for reads (no commit)."""
    return DelegationAuthority(db, LocationHierarchy(db, cache))


async def get_delegation_authority_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheProtocol, Depends(get_cache)],
) -> DelegationAuthority:
    """DelegationAuthority bound to a committing transaction."""
    return DelegationAuthority(db, LocationHierarchy(db, cache))


async def get_template_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> WorkflowTemplateRepository:
    return WorkflowTemplateRepository(db)


async def require_admin(
    actor_id: Annotated[str, Depends(get_actor_id)],
    authority: Annotated[DelegationAuthority, Depends(get_delegation_authority_for_write)],
) -> str:
    """Return actor_id if the actor holds the administrator permission.

    Shares the write transaction of the route it guards.
    """
    if not await authority.is_admin(actor_id):
        raise AuthorizationError("Administrator permission required", actor_id=actor_id)
    return actor_id
