"""Computes who may act on a workflow step.

Loads a CandidatePool snapshot from the identity read models and hands it to
the pure per-strategy resolvers in approvals.domain.approver_strategies.
Performs no writes.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.workflow import ResolutionContext
from approvals.domain.approver_strategies import CandidatePool, Holder, resolve_candidates
from approvals.domain.enums import LocationScope
from approvals.domain.step_config import StepConfig
from approvals.infrastructure.persistence.repositories.user_repo import UserRepository
from approvals.infrastructure.persistence.repositories.user_role_repo import (
    UserRoleRepository,
)
from approvals.infrastructure.services.location_hierarchy import LocationHierarchy
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ApproverResolver:
    """Resolves candidate approvers for a step configuration and run-time context."""

    def __init__(self, db: AsyncSession, hierarchy: LocationHierarchy) -> None:
        self.db = db
        self.hierarchy = hierarchy
        self.users = UserRepository(db)
        self.user_roles = UserRoleRepository(db)

    async def resolve(self, step: StepConfig, context: ResolutionContext) -> frozenset[str]:
        """Return the deduplicated candidate set; empty is a valid result.

        The first conditional rule whose condition holds against
        context.fields replaces the step's strategy (and scope, if the rule
        sets one) for this resolution.
        """
        effective = step.effective_strategy(context.fields)
        pool = await self._load_pool(
            step.required_permission, effective.location_scope, context
        )
        candidates = resolve_candidates(effective.strategy, pool)
        logger.debug(
            "Resolved %d approver(s): instance=%s step=%s strategy=%s rule=%s scope=%s",
            len(candidates),
            context.instance_id,
            step.step_order,
            effective.strategy.kind,
            effective.rule_index,
            effective.location_scope.value,
        )
        return candidates

    async def resolve_ordered(self, step: StepConfig, context: ResolutionContext) -> list[str]:
        """resolve() sorted by ascending user id, for deterministic callers."""
        return sorted(await self.resolve(step, context))

    async def _scope_location_ids(
        self, scope: LocationScope, location_id: str
    ) -> frozenset[str] | None:
        match scope:
            case LocationScope.ALL:
                return None
            case LocationScope.SAME:
                return frozenset({location_id})
            case LocationScope.PARENT:
                parent_id = await self.hierarchy.get_parent_id(location_id)
                return frozenset(i for i in (location_id, parent_id) if i is not None)
            case LocationScope.DESCENDANTS:
                return await self.hierarchy.get_descendant_ids(location_id)

    async def _load_pool(
        self,
        permission: str,
        scope: LocationScope,
        context: ResolutionContext,
    ) -> CandidatePool:
        # A holder counts only if one of their grants covers the workflow location.
        covered: dict[str, str | None] = {}
        for row in await self.user_roles.get_holders(permission):
            if row.user_id in covered:
                continue
            if await self.hierarchy.covers(
                row.location_id, row.include_descendants, context.location_id
            ):
                covered[row.user_id] = row.primary_location_id
        role_names = await self.user_roles.get_role_names(list(covered))
        holders = {
            uid: Holder(
                user_id=uid,
                primary_location_id=primary,
                role_names=role_names.get(uid, frozenset()),
            )
            for uid, primary in covered.items()
        }
        creator = await self.users.get_by_id(context.creator_id)
        return CandidatePool(
            holders=holders,
            scope_location_ids=await self._scope_location_ids(scope, context.location_id),
            manager_id=creator.manager_id if creator is not None else None,
        )
