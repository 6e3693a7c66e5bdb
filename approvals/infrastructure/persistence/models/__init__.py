"""Persistence models: ORM entities and mixins."""

from approvals.infrastructure.persistence.models.delegation import Delegation
from approvals.infrastructure.persistence.models.location import Location
from approvals.infrastructure.persistence.models.mixins import (
    CuidMixin,
    SoftDeleteMixin,
    TimestampedModel,
    TimestampMixin,
    VersionedMixin,
)
from approvals.infrastructure.persistence.models.permission import (
    Permission,
    RolePermission,
    UserRole,
)
from approvals.infrastructure.persistence.models.role import Role
from approvals.infrastructure.persistence.models.user import User
from approvals.infrastructure.persistence.models.workflow import (
    WorkflowInstance,
    WorkflowStep,
    WorkflowStepInstance,
    WorkflowTemplate,
)

__all__ = [
    "CuidMixin",
    "Delegation",
    "Location",
    "Permission",
    "Role",
    "RolePermission",
    "SoftDeleteMixin",
    "TimestampMixin",
    "TimestampedModel",
    "User",
    "UserRole",
    "VersionedMixin",
    "WorkflowInstance",
    "WorkflowStep",
    "WorkflowStepInstance",
    "WorkflowTemplate",
]
