"""User repository (identity read model)."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.domain.enums import RecordStatus
from approvals.infrastructure.persistence.models.user import User
from approvals.infrastructure.persistence.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User lookups. Inactive or soft-deleted users are excluded by get_active."""

    resource_type = "user"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, User)

    async def get_active(self, user_id: str) -> User | None:
        result = await self.db.execute(
            select(User).where(
                User.id == user_id,
                User.status == RecordStatus.ACTIVE.value,
                User.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()
