"""Location repository: materialized-path queries."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.core.constants import PATH_SEP
from approvals.infrastructure.persistence.models.location import Location
from approvals.infrastructure.persistence.repositories.base import BaseRepository


class LocationRepository(BaseRepository[Location]):
    """Location tree reads. Descendant queries use path-prefix matching."""

    resource_type = "location"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Location)

    async def get_child_paths(self, parent_id: str | None) -> list[str]:
        """Paths of the direct children of parent_id (roots when None)."""
        q = select(Location.path)
        if parent_id is None:
            q = q.where(Location.parent_id.is_(None))
        else:
            q = q.where(Location.parent_id == parent_id)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def get_subtree(self, path: str) -> list[Location]:
        """The location at path and every location below it, shallowest first."""
        result = await self.db.execute(
            select(Location)
            .where(
                or_(
                    Location.path == path,
                    Location.path.startswith(path + PATH_SEP, autoescape=True),
                )
            )
            .order_by(Location.level.asc(), Location.path.asc())
        )
        return list(result.scalars().all())

    async def get_by_paths(self, paths: list[str]) -> list[Location]:
        """Locations with the given paths, shallowest first."""
        if not paths:
            return []
        result = await self.db.execute(
            select(Location).where(Location.path.in_(paths)).order_by(Location.level.asc())
        )
        return list(result.scalars().all())
