"""Pure approver resolution: one resolver per strategy variant over a CandidatePool snapshot.

The pool is loaded once per resolution by the infrastructure resolver; the
functions here perform no I/O.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import assert_never

from approvals.domain.step_config import (
    CombinedStrategy,
    ManagerStrategy,
    PermissionStrategy,
    RoleStrategy,
)


@dataclass(frozen=True)
class Holder:
    """An active user whose grant of the step permission covers the workflow location."""

    user_id: str
    primary_location_id: str | None
    role_names: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CandidatePool:
    """Snapshot of everything a strategy needs.

    holders already excludes users whose grants do not cover the workflow
    location. scope_location_ids is None when location scope is unrestricted;
    otherwise only holders whose primary location is in the set are in scope.
    """

    holders: Mapping[str, Holder] = field(default_factory=dict)
    scope_location_ids: frozenset[str] | None = None
    manager_id: str | None = None

    def in_scope(self, user_id: str) -> bool:
        holder = self.holders.get(user_id)
        if holder is None:
            return False
        if self.scope_location_ids is None:
            return True
        return holder.primary_location_id in self.scope_location_ids

    def in_scope_holders(self) -> frozenset[str]:
        return frozenset(uid for uid in self.holders if self.in_scope(uid))


def _manager_holder(pool: CandidatePool) -> frozenset[str]:
    if pool.manager_id is not None and pool.manager_id in pool.holders:
        return frozenset({pool.manager_id})
    return frozenset()


def _qualified_manager(pool: CandidatePool) -> frozenset[str]:
    return frozenset(uid for uid in _manager_holder(pool) if pool.in_scope(uid))


def resolve_permission(strategy: PermissionStrategy, pool: CandidatePool) -> frozenset[str]:
    """All in-scope holders.

    With include_manager the creator's manager is added whenever they hold
    the permission, whatever the location scope.
    """
    result = pool.in_scope_holders()
    if strategy.include_manager:
        result |= _manager_holder(pool)
    return result


def resolve_manager(strategy: ManagerStrategy, pool: CandidatePool) -> frozenset[str]:
    """{manager} if the creator's direct manager holds the permission in scope, else empty.

    There is no escalation to the manager's manager.
    """
    return _qualified_manager(pool)


def resolve_role(strategy: RoleStrategy | CombinedStrategy, pool: CandidatePool) -> frozenset[str]:
    """In-scope holders having at least one of required_roles."""
    return frozenset(
        uid
        for uid in pool.in_scope_holders()
        if pool.holders[uid].role_names & strategy.required_roles
    )


def resolve_combined(strategy: CombinedStrategy, pool: CandidatePool) -> frozenset[str]:
    """Union of the manager and role resolutions."""
    return _qualified_manager(pool) | resolve_role(strategy, pool)


def resolve_candidates(
    strategy: PermissionStrategy | ManagerStrategy | RoleStrategy | CombinedStrategy,
    pool: CandidatePool,
) -> frozenset[str]:
    """Dispatch to the resolver for the strategy's variant."""
    match strategy:
        case PermissionStrategy():
            return resolve_permission(strategy, pool)
        case ManagerStrategy():
            return resolve_manager(strategy, pool)
        case RoleStrategy():
            return resolve_role(strategy, pool)
        case CombinedStrategy():
            return resolve_combined(strategy, pool)
        case _:
            assert_never(strategy)
