"""Approval core services: location hierarchy, approver resolution, delegation authority, workflow engine."""

from approvals.infrastructure.services.approver_resolver import ApproverResolver
from approvals.infrastructure.services.delegation_authority import DelegationAuthority
from approvals.infrastructure.services.event_publisher import LoggingEventPublisher
from approvals.infrastructure.services.location_hierarchy import LocationHierarchy
from approvals.infrastructure.services.workflow_engine import WorkflowEngine

__all__ = [
    "ApproverResolver",
    "DelegationAuthority",
    "LocationHierarchy",
    "LoggingEventPublisher",
    "WorkflowEngine",
]
