"""Application DTOs (no ORM dependency)."""

from approvals.application.dtos.delegation import AuthorityResult, DelegationResult
from approvals.application.dtos.location import LocationResult
from approvals.application.dtos.workflow import (
    AutoRunResult,
    PendingApproval,
    ResolutionContext,
    StepPreview,
    StepReadModel,
    TransitionResult,
    WorkflowChangeEvent,
    WorkflowReadModel,
)

__all__ = [
    "AuthorityResult",
    "AutoRunResult",
    "DelegationResult",
    "LocationResult",
    "PendingApproval",
    "ResolutionContext",
    "StepPreview",
    "StepReadModel",
    "TransitionResult",
    "WorkflowChangeEvent",
    "WorkflowReadModel",
]
