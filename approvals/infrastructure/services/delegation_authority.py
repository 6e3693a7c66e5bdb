"""Procedural authorization: direct grants first, then active delegations.

Also owns delegation management: create, revoke, list and expire.
Location containment is answered by LocationHierarchy; permission grants
are always read from the database.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.delegation import AuthorityResult, DelegationResult
from approvals.core.config import Settings, get_settings
from approvals.domain.enums import DelegationStatus
from approvals.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    OverlappingDelegationError,
    ValidationError,
)
from approvals.infrastructure.persistence.models.delegation import Delegation
from approvals.infrastructure.persistence.repositories.delegation_repo import (
    DelegationRepository,
)
from approvals.infrastructure.persistence.repositories.user_repo import UserRepository
from approvals.infrastructure.persistence.repositories.user_role_repo import (
    UserRoleRepository,
)
from approvals.infrastructure.services.location_hierarchy import LocationHierarchy
from approvals.shared.telemetry.logging import get_logger
from approvals.shared.utils.datetime import (
    ensure_utc,
    utc_now,
    windows_overlap,
    within_window,
)

logger = get_logger(__name__)


def to_delegation_result(d: Delegation) -> DelegationResult:
    return DelegationResult(
        id=d.id,
        delegator_user_id=d.delegator_user_id,
        delegate_user_id=d.delegate_user_id,
        permission=d.permission,
        location_id=d.location_id,
        include_descendants=d.include_descendants,
        valid_from=ensure_utc(d.valid_from),
        valid_until=ensure_utc(d.valid_until),
        status=d.status,
        revoked_at=ensure_utc(d.revoked_at) if d.revoked_at else None,
        created_by=d.created_by,
        reason=d.reason,
    )


class DelegationAuthority:
    """Answers "may user X act on permission P at location L" and manages delegations."""

    def __init__(
        self,
        db: AsyncSession,
        hierarchy: LocationHierarchy,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.hierarchy = hierarchy
        self.settings = settings or get_settings()
        self.delegations = DelegationRepository(db)
        self.users = UserRepository(db)
        self.user_roles = UserRoleRepository(db)

    @staticmethod
    def is_valid(delegation: Delegation, now: datetime) -> bool:
        """Usable iff active, not revoked, and valid_from <= now <= valid_until."""
        return (
            delegation.status == DelegationStatus.ACTIVE.value
            and delegation.revoked_at is None
            and within_window(now, delegation.valid_from, delegation.valid_until)
        )

    async def _scopes_intersect(
        self,
        a_location_id: str | None,
        a_include_descendants: bool,
        b_location_id: str | None,
        b_include_descendants: bool,
    ) -> bool:
        if a_location_id is None or b_location_id is None:
            return True
        if a_location_id == b_location_id:
            return True
        if a_include_descendants and await self.hierarchy.is_descendant_of(
            b_location_id, a_location_id
        ):
            return True
        return b_include_descendants and await self.hierarchy.is_descendant_of(
            a_location_id, b_location_id
        )

    async def has_overlap(
        self,
        delegator_user_id: str,
        delegate_user_id: str,
        permission: str,
        location_id: str | None,
        include_descendants: bool,
        valid_from: datetime,
        valid_until: datetime,
        exclude_id: str | None = None,
    ) -> bool:
        """True if another active delegation for the same triple intersects in time and scope.

        Windows are closed intervals, so touching endpoints overlap.
        """
        existing = await self.delegations.get_active_for_pair(
            delegator_user_id, delegate_user_id, permission, exclude_id
        )
        for other in existing:
            if not windows_overlap(valid_from, valid_until, other.valid_from, other.valid_until):
                continue
            if await self._scopes_intersect(
                location_id, include_descendants, other.location_id, other.include_descendants
            ):
                return True
        return False

    async def is_admin(self, user_id: str) -> bool:
        return bool(await self.user_roles.get_grants(user_id, self.settings.admin_permission))

    async def has_direct_authority(self, user_id: str, permission: str, location_id: str) -> bool:
        """Whether an active role assignment grants permission with a scope covering location_id."""
        for grant in await self.user_roles.get_grants(user_id, permission):
            if await self.hierarchy.covers(
                grant.location_id, grant.include_descendants, location_id
            ):
                return True
        return False

    async def check_authority(
        self,
        user_id: str,
        permission: str,
        location_id: str,
        now: datetime | None = None,
    ) -> AuthorityResult:
        """Direct grant (or admin) first, then the first usable delegation covering location_id.

        Inactive or deleted users are never authorized.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        if await self.users.get_active(user_id) is None:
            return AuthorityResult.denied()
        if await self.is_admin(user_id):
            return AuthorityResult.direct()
        if await self.has_direct_authority(user_id, permission, location_id):
            return AuthorityResult.direct()
        for delegation in await self.delegations.get_usable_for_delegate(user_id, permission, now):
            if not self.is_valid(delegation, now):
                continue
            if await self.hierarchy.covers(
                delegation.location_id, delegation.include_descendants, location_id
            ):
                return AuthorityResult.via_delegation(delegation.id)
        return AuthorityResult.denied()

    async def create_delegation(
        self,
        *,
        actor_id: str,
        delegator_user_id: str,
        delegate_user_id: str,
        permission: str,
        valid_from: datetime,
        valid_until: datetime,
        location_id: str | None = None,
        include_descendants: bool = False,
        reason: str | None = None,
    ) -> DelegationResult:
        """Validate and insert an active delegation.

        Raises:
            ValidationError: Bad window, self-delegation, unknown permission,
                inactive party, or delegator lacking the permission at scope.
            AuthorizationError: actor is neither the delegator nor an admin.
            NotFoundError: location_id does not exist.
            OverlappingDelegationError: an active delegation for the same
                (delegator, delegate, permission) overlaps in time and scope.
        """
        valid_from, valid_until = ensure_utc(valid_from), ensure_utc(valid_until)
        if valid_from >= valid_until:
            raise ValidationError("valid_from must be before valid_until", field="valid_until")
        if delegator_user_id == delegate_user_id:
            raise ValidationError("Cannot delegate to oneself", field="delegate_user_id")
        if actor_id != delegator_user_id and not await self.is_admin(actor_id):
            raise AuthorizationError(
                "Only the delegator or an administrator can create this delegation",
                actor_id=actor_id,
                delegator_user_id=delegator_user_id,
            )
        if not await self.user_roles.permission_exists(permission):
            raise ValidationError(f"Unknown permission: {permission}", field="permission")
        for field, uid in (
            ("delegator_user_id", delegator_user_id),
            ("delegate_user_id", delegate_user_id),
        ):
            if await self.users.get_active(uid) is None:
                raise ValidationError("User is not active", field=field, user_id=uid)
        if location_id is not None:
            await self.hierarchy.get_or_raise(location_id)
        if not await self._delegator_holds(delegator_user_id, permission, location_id):
            raise ValidationError(
                "Delegator does not hold the permission at this scope",
                field="permission",
                delegator_user_id=delegator_user_id,
                permission=permission,
            )
        if await self.has_overlap(
            delegator_user_id,
            delegate_user_id,
            permission,
            location_id,
            include_descendants,
            valid_from,
            valid_until,
        ):
            logger.info(
                "Delegation rejected (overlap): delegator=%s delegate=%s permission=%s",
                delegator_user_id,
                delegate_user_id,
                permission,
            )
            raise OverlappingDelegationError(delegator_user_id, delegate_user_id, permission)
        delegation = await self.delegations.create(
            Delegation(
                delegator_user_id=delegator_user_id,
                delegate_user_id=delegate_user_id,
                permission=permission,
                location_id=location_id,
                include_descendants=include_descendants,
                valid_from=valid_from,
                valid_until=valid_until,
                status=DelegationStatus.ACTIVE.value,
                created_by=actor_id,
                reason=reason,
            )
        )
        logger.info(
            "Delegation created: id=%s delegator=%s delegate=%s permission=%s location=%s by=%s",
            delegation.id,
            delegator_user_id,
            delegate_user_id,
            permission,
            location_id,
            actor_id,
        )
        return to_delegation_result(delegation)

    async def _delegator_holds(
        self, delegator_user_id: str, permission: str, location_id: str | None
    ) -> bool:
        grants = await self.user_roles.get_grants(delegator_user_id, permission)
        if location_id is None:
            return any(g.location_id is None for g in grants)
        for grant in grants:
            if await self.hierarchy.covers(
                grant.location_id, grant.include_descendants, location_id
            ):
                return True
        return False

    async def revoke_delegation(self, delegation_id: str, actor_id: str) -> DelegationResult:
        """active -> revoked, by the delegator or an admin.

        Raises:
            NotFoundError: Unknown delegation.
            AuthorizationError: actor is neither the delegator nor an admin.
            ConflictError: The delegation is no longer active.
        """
        delegation = await self.delegations.get_or_raise(delegation_id)
        if actor_id != delegation.delegator_user_id and not await self.is_admin(actor_id):
            raise AuthorizationError(
                "Only the delegator or an administrator can revoke this delegation",
                actor_id=actor_id,
                delegation_id=delegation_id,
            )
        if not await self.delegations.revoke(delegation_id, actor_id, utc_now()):
            raise ConflictError(
                "Delegation is not active", delegation_id=delegation_id, status=delegation.status
            )
        await self.db.refresh(delegation)
        logger.info("Delegation revoked: id=%s by=%s", delegation_id, actor_id)
        return to_delegation_result(delegation)

    async def list_for_delegate(
        self,
        user_id: str,
        permission: str | None = None,
        location_id: str | None = None,
        now: datetime | None = None,
    ) -> list[DelegationResult]:
        """Delegations user_id can use now, optionally narrowed to a permission and location."""
        now = ensure_utc(now) if now is not None else utc_now()
        results = []
        for delegation in await self.delegations.get_usable_for_delegate(user_id, permission, now):
            if location_id is not None and not await self.hierarchy.covers(
                delegation.location_id, delegation.include_descendants, location_id
            ):
                continue
            results.append(to_delegation_result(delegation))
        return results

    async def list_by_delegator(
        self,
        user_id: str,
        status: DelegationStatus | None = None,
        include_expired: bool = False,
    ) -> list[DelegationResult]:
        return [
            to_delegation_result(d)
            for d in await self.delegations.list_by_delegator(user_id, status, include_expired)
        ]

    async def expire_delegations(self, now: datetime | None = None) -> int:
        """Move every active delegation with valid_until < now to expired. Idempotent."""
        now = ensure_utc(now) if now is not None else utc_now()
        count = await self.delegations.expire_before(now)
        # Bulk UPDATE bypasses the identity map; reload rows on next access.
        self.db.expire_all()
        logger.info("Delegation expiry sweep: expired=%d now=%s", count, now.isoformat())
        return count
