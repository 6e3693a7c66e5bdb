"""Ports (Protocols) implemented by infrastructure services."""

from approvals.application.interfaces.services import IWorkflowEventPublisher

__all__ = ["IWorkflowEventPublisher"]
