"""UserRole repository: permission grants through active role assignments."""

from dataclasses import dataclass

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from approvals.domain.enums import RecordStatus
from approvals.infrastructure.persistence.models.permission import (
    Permission,
    RolePermission,
    UserRole,
)
from approvals.infrastructure.persistence.models.role import Role
from approvals.infrastructure.persistence.models.user import User


@dataclass(frozen=True)
class PermissionGrant:
    """One active role assignment granting a permission, with its location scope."""

    user_id: str
    role_name: str
    location_id: str | None
    include_descendants: bool


@dataclass(frozen=True)
class HolderRow:
    """One active assignment granting a permission to an active user.

    location_id and include_descendants are the assignment's grant scope;
    primary_location_id is what location_scope filters on.
    """

    user_id: str
    primary_location_id: str | None
    location_id: str | None = None
    include_descendants: bool = False


class UserRoleRepository:
    """Read-side queries over user_role -> role -> role_permission -> permission.

    An assignment counts only when it is not deleted and its role is active.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _grants_query(self, permission: str):
        return (
            select(UserRole, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(
                Permission.name == permission,
                Role.status == RecordStatus.ACTIVE.value,
                UserRole.deleted_at.is_(None),
            )
        )

    async def get_grants(self, user_id: str, permission: str) -> list[PermissionGrant]:
        """Active assignments through which user_id holds permission."""
        result = await self.db.execute(
            self._grants_query(permission).where(UserRole.user_id == user_id)
        )
        return [
            PermissionGrant(
                user_id=ur.user_id,
                role_name=role_name,
                location_id=ur.location_id,
                include_descendants=ur.include_descendants,
            )
            for ur, role_name in result.all()
        ]

    async def get_holders(self, permission: str) -> list[HolderRow]:
        """Every active assignment granting permission to an active, non-deleted user."""
        result = await self.db.execute(
            select(
                User.id,
                User.primary_location_id,
                UserRole.location_id,
                UserRole.include_descendants,
            )
            .join(UserRole, UserRole.user_id == User.id)
            .join(Role, Role.id == UserRole.role_id)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .where(
                Permission.name == permission,
                Role.status == RecordStatus.ACTIVE.value,
                UserRole.deleted_at.is_(None),
                User.status == RecordStatus.ACTIVE.value,
                User.deleted_at.is_(None),
            )
            .distinct()
        )
        return [
            HolderRow(
                user_id=uid,
                primary_location_id=primary,
                location_id=scope,
                include_descendants=descendants,
            )
            for uid, primary, scope, descendants in result.all()
        ]

    async def get_role_names(self, user_ids: list[str]) -> dict[str, frozenset[str]]:
        """Names of active roles assigned to each of user_ids (users with none are omitted)."""
        if not user_ids:
            return {}
        result = await self.db.execute(
            select(UserRole.user_id, Role.name)
            .join(Role, Role.id == UserRole.role_id)
            .where(
                UserRole.user_id.in_(user_ids),
                UserRole.deleted_at.is_(None),
                Role.status == RecordStatus.ACTIVE.value,
            )
        )
        names: dict[str, set[str]] = {}
        for user_id, role_name in result.all():
            names.setdefault(user_id, set()).add(role_name)
        return {uid: frozenset(roles) for uid, roles in names.items()}

    async def permission_exists(self, permission: str) -> bool:
        result = await self.db.execute(select(exists().where(Permission.name == permission)))
        return bool(result.scalar())
