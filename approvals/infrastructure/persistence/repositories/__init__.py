"""Repositories: data access over ORM models. Callers own the transaction."""

from approvals.infrastructure.persistence.repositories.base import BaseRepository
from approvals.infrastructure.persistence.repositories.delegation_repo import (
    DelegationRepository,
)
from approvals.infrastructure.persistence.repositories.location_repo import (
    LocationRepository,
)
from approvals.infrastructure.persistence.repositories.user_repo import UserRepository
from approvals.infrastructure.persistence.repositories.user_role_repo import (
    HolderRow,
    PermissionGrant,
    UserRoleRepository,
)
from approvals.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowInstanceRepository,
    WorkflowStepInstanceRepository,
    WorkflowTemplateRepository,
)

__all__ = [
    "BaseRepository",
    "DelegationRepository",
    "HolderRow",
    "LocationRepository",
    "PermissionGrant",
    "UserRepository",
    "UserRoleRepository",
    "WorkflowInstanceRepository",
    "WorkflowStepInstanceRepository",
    "WorkflowTemplateRepository",
]
