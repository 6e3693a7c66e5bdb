"""Workflow change event publishers (implement IWorkflowEventPublisher)."""

from __future__ import annotations

from approvals.application.dtos.workflow import WorkflowChangeEvent
from approvals.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LoggingEventPublisher:
    """Default publisher: writes each event to the application log.

    Audit and notification collaborators subscribe by providing their own
    publisher to WorkflowEngine.
    """

    async def publish(self, event: WorkflowChangeEvent) -> None:
        logger.info(
            "Workflow event: instance=%s step=%s action=%s actor=%s performed_by=%s",
            event.instance_id,
            event.step_order,
            event.action.value,
            event.actor_id,
            event.performed_by,
            extra={"workflow_event": event.to_dict()},
        )
