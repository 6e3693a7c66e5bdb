"""Materialized-path location tree.

Paths are dot-separated numeric segments from the root ('1', '1.2', '1.2.3');
level is path depth minus one. Descendant-id sets are kept in an injected
TTL cache; staleness within the TTL is acceptable because callers use them
only for scope containment, never for permission grants.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.application.dtos.location import LocationResult
from approvals.core.config import get_settings
from approvals.core.constants import PATH_SEP
from approvals.domain.enums import RecordStatus
from approvals.domain.exceptions import ConflictError, ValidationError
from approvals.infrastructure.cache.cache_protocol import CacheProtocol
from approvals.infrastructure.cache.keys import location_tree_key
from approvals.infrastructure.persistence.models.location import Location
from approvals.infrastructure.persistence.repositories.location_repo import (
    LocationRepository,
)
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _to_result(location: Location) -> LocationResult:
    return LocationResult(
        id=location.id,
        name=location.name,
        parent_id=location.parent_id,
        path=location.path,
        level=location.level,
        status=location.status,
    )


def _last_segment(path: str) -> int | None:
    segment = path.rsplit(PATH_SEP, 1)[-1]
    return int(segment) if segment.isdigit() else None


class LocationHierarchy:
    """Ancestor/descendant queries and path assignment over the location table."""

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheProtocol,
        ttl: int | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.ttl = ttl if ttl is not None else get_settings().cache_ttl_location_tree
        self.locations = LocationRepository(db)

    async def get_or_raise(self, location_id: str) -> Location:
        return await self.locations.get_or_raise(location_id)

    @staticmethod
    def calculate_level(path: str) -> int:
        """Depth of path minus one ('1' -> 0, '1.2.3' -> 2)."""
        return path.count(PATH_SEP)

    @staticmethod
    def is_path_descendant(path: str, ancestor_path: str) -> bool:
        """True iff path equals ancestor_path or lies below it."""
        return path == ancestor_path or path.startswith(ancestor_path + PATH_SEP)

    async def calculate_path(self, parent_id: str | None) -> str:
        """Path for a new location under parent_id (a new root when None).

        The new segment is one more than the largest numeric segment among
        existing siblings.

        Raises:
            NotFoundError: If parent_id does not exist.
        """
        if parent_id is None:
            prefix = ""
        else:
            parent = await self.get_or_raise(parent_id)
            prefix = parent.path + PATH_SEP
        segments = [_last_segment(p) for p in await self.locations.get_child_paths(parent_id)]
        return f"{prefix}{max((s for s in segments if s is not None), default=0) + 1}"

    async def create_location(self, name: str, parent_id: str | None = None) -> Location:
        """Insert a location with a computed path and level.

        Raises:
            NotFoundError: If parent_id does not exist.
            ConflictError: If a concurrent insert took the same path.
        """
        path = await self.calculate_path(parent_id)
        location = Location(
            name=name,
            parent_id=parent_id,
            path=path,
            level=self.calculate_level(path),
            status=RecordStatus.ACTIVE.value,
        )
        try:
            await self.locations.create(location)
        except IntegrityError:
            raise ConflictError(
                "Location path already taken; retry", path=path, parent_id=parent_id
            ) from None
        if parent_id is not None:
            await self.invalidate(parent_id)
        logger.info("Location created: id=%s path=%s", location.id, path)
        return location

    async def get_descendant_ids(self, location_id: str) -> frozenset[str]:
        """Ids of location_id and every location below it (empty if unknown).

        Read-through cached per location for the configured TTL.
        """
        key = location_tree_key(location_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return frozenset(cached)
        location = await self.locations.get_by_id(location_id)
        if location is None:
            return frozenset()
        ids = sorted(loc.id for loc in await self.locations.get_subtree(location.path))
        await self.cache.set(key, ids, ttl=self.ttl)
        return frozenset(ids)

    async def is_descendant_of(self, location_id: str, ancestor_id: str) -> bool:
        """True iff location_id is ancestor_id or lies below it. Unknown ids yield False."""
        return location_id in await self.get_descendant_ids(ancestor_id)

    async def covers(
        self, scope_location_id: str | None, include_descendants: bool, location_id: str
    ) -> bool:
        """Whether a grant scoped to (scope_location_id, include_descendants) applies at location_id.

        None is a global scope. Otherwise the scope must equal location_id, or
        contain it when include_descendants is set.
        """
        if scope_location_id is None or scope_location_id == location_id:
            return True
        return include_descendants and await self.is_descendant_of(location_id, scope_location_id)

    async def get_descendants(self, location_id: str) -> list[LocationResult]:
        """Locations strictly below location_id, shallowest first."""
        location = await self.get_or_raise(location_id)
        return [
            _to_result(loc)
            for loc in await self.locations.get_subtree(location.path)
            if loc.id != location.id
        ]

    async def get_ancestors(self, location_id: str) -> list[LocationResult]:
        """Locations strictly above location_id, root first."""
        location = await self.get_or_raise(location_id)
        segments = location.path.split(PATH_SEP)
        paths = [PATH_SEP.join(segments[:i]) for i in range(1, len(segments))]
        return [_to_result(loc) for loc in await self.locations.get_by_paths(paths)]

    async def get_ancestor_ids(self, location_id: str) -> list[str]:
        return [loc.id for loc in await self.get_ancestors(location_id)]

    async def get_parent_id(self, location_id: str) -> str | None:
        location = await self.locations.get_by_id(location_id)
        return location.parent_id if location is not None else None

    async def validate_tree_integrity(self, location_id: str) -> None:
        """Check path and level of one location against its parent.

        Raises:
            NotFoundError: If the location (or its recorded parent) does not exist.
            ValidationError: If the path does not extend the parent's path, a
                root path is not purely numeric, or level != path depth - 1.
        """
        location = await self.get_or_raise(location_id)
        segments = location.path.split(PATH_SEP)
        if not all(seg.isdigit() for seg in segments):
            raise ValidationError(
                "Location path segments must be numeric",
                field="path",
                location_id=location_id,
                path=location.path,
            )
        if location.parent_id is None:
            if len(segments) != 1:
                raise ValidationError(
                    "Root location path must be a single numeric segment",
                    field="path",
                    location_id=location_id,
                    path=location.path,
                )
        else:
            parent = await self.get_or_raise(location.parent_id)
            if PATH_SEP.join(segments[:-1]) != parent.path:
                raise ValidationError(
                    "Location path does not extend its parent's path",
                    field="path",
                    location_id=location_id,
                    path=location.path,
                    parent_path=parent.path,
                )
        expected_level = self.calculate_level(location.path)
        if location.level != expected_level:
            raise ValidationError(
                "Location level does not match path depth",
                field="level",
                location_id=location_id,
                level=location.level,
                expected_level=expected_level,
            )

    async def invalidate(self, location_id: str) -> None:
        """Drop cached descendant sets of location_id and all of its ancestors."""
        ids = [location_id]
        if await self.locations.get_by_id(location_id) is not None:
            ids.extend(await self.get_ancestor_ids(location_id))
        for lid in ids:
            await self.cache.delete(location_tree_key(lid))
        logger.debug("Location tree cache invalidated: %s", ids)
