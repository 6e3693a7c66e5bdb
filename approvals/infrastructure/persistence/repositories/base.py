"""Base repository: lookup by id and flush-on-create within the caller's transaction."""

from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.domain.exceptions import NotFoundError
from approvals.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Shared get_by_id, get_or_raise and create.

    Repositories never commit; the caller owns the unit of work.
    """

    resource_type: ClassVar[str] = "resource"

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_or_raise(self, entity_id: str) -> ModelType:
        """get_by_id, raising NotFoundError(resource_type, entity_id) when absent."""
        obj = await self.get_by_id(entity_id)
        if obj is None:
            raise NotFoundError(self.resource_type, entity_id)
        return obj

    async def create(self, obj: ModelType) -> ModelType:
        """Add, flush and refresh so server defaults are loaded."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj
