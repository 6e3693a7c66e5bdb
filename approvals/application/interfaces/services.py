"""Service interfaces (ports) for the application layer.

WorkflowEngine depends on these rather than on concrete collaborators.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from approvals.application.dtos.workflow import WorkflowChangeEvent


class IWorkflowEventPublisher(Protocol):
    """Receives workflow change events for audit and notification collaborators."""

    async def publish(self, event: WorkflowChangeEvent) -> None:
        """Publish one event. Called after the transition has been committed."""
