"""Delegation repository."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.domain.enums import DelegationStatus
from approvals.infrastructure.persistence.models.delegation import Delegation
from approvals.infrastructure.persistence.repositories.base import BaseRepository


class DelegationRepository(BaseRepository[Delegation]):
    """Delegation reads and the two permitted mutations (revoke, expire)."""

    resource_type = "delegation"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Delegation)

    async def get_active_for_pair(
        self,
        delegator_user_id: str,
        delegate_user_id: str,
        permission: str,
        exclude_id: str | None = None,
    ) -> list[Delegation]:
        """Active delegations for the same (delegator, delegate, permission)."""
        q = select(Delegation).where(
            Delegation.delegator_user_id == delegator_user_id,
            Delegation.delegate_user_id == delegate_user_id,
            Delegation.permission == permission,
            Delegation.status == DelegationStatus.ACTIVE.value,
        )
        if exclude_id is not None:
            q = q.where(Delegation.id != exclude_id)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def get_usable_for_delegate(
        self, delegate_user_id: str, permission: str | None, now: datetime
    ) -> list[Delegation]:
        """Delegations to delegate_user_id usable at now, soonest-ending first."""
        q = select(Delegation).where(
            Delegation.delegate_user_id == delegate_user_id,
            Delegation.status == DelegationStatus.ACTIVE.value,
            Delegation.revoked_at.is_(None),
            Delegation.valid_from <= now,
            Delegation.valid_until >= now,
        )
        if permission is not None:
            q = q.where(Delegation.permission == permission)
        result = await self.db.execute(
            q.order_by(Delegation.valid_until.asc(), Delegation.id.asc())
        )
        return list(result.scalars().all())

    async def list_by_delegator(
        self,
        delegator_user_id: str,
        status: DelegationStatus | None = None,
        include_expired: bool = False,
    ) -> list[Delegation]:
        """Delegations granted by delegator_user_id, newest window first."""
        q = select(Delegation).where(Delegation.delegator_user_id == delegator_user_id)
        if status is not None:
            q = q.where(Delegation.status == status.value)
        elif not include_expired:
            q = q.where(Delegation.status != DelegationStatus.EXPIRED.value)
        result = await self.db.execute(
            q.order_by(Delegation.valid_from.desc(), Delegation.id.asc())
        )
        return list(result.scalars().all())

    async def revoke(self, delegation_id: str, revoked_by: str, at: datetime) -> bool:
        """active -> revoked. Returns False if the delegation is no longer active."""
        result = await self.db.execute(
            update(Delegation)
            .where(
                Delegation.id == delegation_id,
                Delegation.status == DelegationStatus.ACTIVE.value,
            )
            .values(
                status=DelegationStatus.REVOKED.value,
                revoked_at=at,
                revoked_by=revoked_by,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def expire_before(self, now: datetime) -> int:
        """active -> expired for every delegation with valid_until < now, in one statement."""
        result = await self.db.execute(
            update(Delegation)
            .where(
                Delegation.status == DelegationStatus.ACTIVE.value,
                Delegation.valid_until < now,
            )
            .values(status=DelegationStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
