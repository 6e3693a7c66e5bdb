"""Domain layer: enums, exceptions, step configuration and pure resolution rules.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from approvals.domain.enums import (
    ApproverStrategyKind,
    AuthoritySource,
    DelegationStatus,
    InstanceStatus,
    LocationScope,
    StepAction,
    StepStatus,
    TemplateStatus,
)
from approvals.domain.exceptions import (
    ApprovalsException,
    AuthorizationError,
    AutoRunStepLimitError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    OverlappingDelegationError,
    ValidationError,
)
from approvals.domain.step_config import (
    CombinedStrategy,
    Condition,
    ConditionalRule,
    ManagerStrategy,
    PermissionStrategy,
    RoleStrategy,
    StepConfig,
)

__all__ = [
    # Enums
    "ApproverStrategyKind",
    "AuthoritySource",
    "DelegationStatus",
    "InstanceStatus",
    "LocationScope",
    "StepAction",
    "StepStatus",
    "TemplateStatus",
    # Exceptions
    "ApprovalsException",
    "AuthorizationError",
    "AutoRunStepLimitError",
    "ConfigurationError",
    "ConflictError",
    "NotFoundError",
    "OverlappingDelegationError",
    "ValidationError",
    # Step configuration
    "CombinedStrategy",
    "Condition",
    "ConditionalRule",
    "ManagerStrategy",
    "PermissionStrategy",
    "RoleStrategy",
    "StepConfig",
]
