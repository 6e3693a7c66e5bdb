"""Domain exceptions for the approvals core.

Defines domain-level exceptions that represent procedural rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers. None of them is
retried internally: each is either a configuration defect or a business
condition the caller must react to.
"""

from typing import Any


class ApprovalsException(Exception):
    """Base exception for all approvals errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. instance_id, step_order).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the API error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ApprovalsException):
    """Raised when input fails validation (missing comment, out-of-range route target, bad config)."""

    def __init__(self, message: str, field: str | None = None, **details_extra: Any) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
            **details_extra: Optional keys merged into details.
        """
        details = {"field": field} if field else {}
        details.update(details_extra)
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(ApprovalsException):
    """Raised when a requested instance, template, step, location or delegation is absent."""

    def __init__(self, resource_type: str, resource_id: str | int) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow_instance').
            resource_id: The id that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ConflictError(ApprovalsException):
    """Raised for stale or out-of-turn transitions and for mutations of terminal instances.

    The caller should refresh its view of the instance and retry.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "CONFLICT", details)


class AuthorizationError(ApprovalsException):
    """Raised when an actor is neither a resolved approver nor validly authorized."""

    def __init__(
        self,
        message: str = "Actor is not authorized for this action",
        **details: Any,
    ) -> None:
        super().__init__(message, "AUTHORIZATION_ERROR", details)


class ConfigurationError(ApprovalsException):
    """Raised when workflow configuration cannot be executed.

    Examples: a step resolves zero candidates or zero authorized candidates,
    a template has no steps, or no workflow location can be determined.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)


class OverlappingDelegationError(ConflictError):
    """Raised when a new delegation overlaps an active one in time and location scope."""

    def __init__(
        self,
        delegator_user_id: str,
        delegate_user_id: str,
        permission: str,
    ) -> None:
        super().__init__(
            "Overlapping delegation exists for this delegator, delegate and permission",
            delegator_user_id=delegator_user_id,
            delegate_user_id=delegate_user_id,
            permission=permission,
        )


class AutoRunStepLimitError(ConflictError):
    """Raised when auto-run performs max_steps approvals without reaching a terminal state."""

    def __init__(self, instance_id: str, max_steps: int, current_step_order: int) -> None:
        super().__init__(
            f"Auto-run reached max_steps={max_steps} before the workflow completed",
            instance_id=instance_id,
            max_steps=max_steps,
            halted_at_step=current_step_order,
            steps_performed=max_steps,
        )
        self.max_steps = max_steps
        self.step_order = current_step_order
