"""Domain enumerations for the approvals core.

Enums represent fixed sets of domain values (statuses, strategies, scopes).
Stored as their string values.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class InstanceStatus(_ValuesMixin, str, Enum):
    """Workflow instance status. Draft is owned by the caller (before submit or after routing to the creator)."""

    DRAFT = "Draft"
    UNDER_REVIEW = "UnderReview"
    APPROVED = "Approved"
    DECLINED = "Declined"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further mutation is permitted."""
        return self in (InstanceStatus.APPROVED, InstanceStatus.DECLINED)


class StepStatus(_ValuesMixin, str, Enum):
    """Per-step execution status."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class StepAction(_ValuesMixin, str, Enum):
    """Action carried by a workflow change event."""

    APPROVED = "approved"
    DECLINED = "declined"
    ROUTED_BACK = "routed_back"


class TemplateStatus(_ValuesMixin, str, Enum):
    """Workflow template lifecycle status."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"


class ResourceType(_ValuesMixin, str, Enum):
    """Organizational request type carried through a workflow."""

    LEAVE = "leave"
    TIMESHEET = "timesheet"


class ApproverStrategyKind(_ValuesMixin, str, Enum):
    """Approver resolution strategy discriminator."""

    PERMISSION = "permission"
    MANAGER = "manager"
    ROLE = "role"
    COMBINED = "combined"


class LocationScope(_ValuesMixin, str, Enum):
    """Which part of the location hierarchy approver resolution includes."""

    SAME = "same"
    PARENT = "parent"
    DESCENDANTS = "descendants"
    ALL = "all"


class DelegationStatus(_ValuesMixin, str, Enum):
    """Delegation lifecycle status. Only active -> revoked and active -> expired transitions exist."""

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class AuthoritySource(_ValuesMixin, str, Enum):
    """Where an authorization decision came from."""

    DIRECT = "direct"
    DELEGATION = "delegation"


class RecordStatus(_ValuesMixin, str, Enum):
    """Active/inactive flag for read models (location, role, user)."""

    ACTIVE = "active"
    INACTIVE = "inactive"
