"""Workflow engine: the instance/step state machine.

States per instance: UnderReview -> Approved | Declined, plus Draft when
routed back to the creator. Every operation runs in its own unit of work
(one transaction). The check "instance is still UnderReview at this
step_order and version" and the write that advances it are one conditional
UPDATE; a writer that loses the race gets ConflictError and nothing else it
wrote is kept. Change events are published after commit.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

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
from approvals.application.interfaces.services import IWorkflowEventPublisher
from approvals.core.config import Settings, get_settings
from approvals.core.constants import AUTO_RUN_COMMENT_PREFIX
from approvals.domain.enums import (
    InstanceStatus,
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
    ValidationError,
)
from approvals.domain.step_config import StepConfig
from approvals.infrastructure.cache.cache_protocol import CacheProtocol
from approvals.infrastructure.persistence.models.workflow import WorkflowInstance
from approvals.infrastructure.persistence.repositories.user_repo import UserRepository
from approvals.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowInstanceRepository,
    WorkflowStepInstanceRepository,
    WorkflowTemplateRepository,
)
from approvals.infrastructure.services.approver_resolver import ApproverResolver
from approvals.infrastructure.services.delegation_authority import DelegationAuthority
from approvals.infrastructure.services.event_publisher import LoggingEventPublisher
from approvals.infrastructure.services.location_hierarchy import LocationHierarchy
from approvals.shared.telemetry.logging import get_logger
from approvals.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)


@dataclass
class _UnitOfWork:
    """Collaborators bound to one session/transaction."""

    db: AsyncSession
    templates: WorkflowTemplateRepository
    instances: WorkflowInstanceRepository
    steps: WorkflowStepInstanceRepository
    users: UserRepository
    hierarchy: LocationHierarchy
    resolver: ApproverResolver
    authority: DelegationAuthority


def _require_comment(comment: str | None) -> str:
    if comment is None or not comment.strip():
        raise ValidationError("A comment is required for this action", field="comment")
    return comment.strip()


class WorkflowEngine:
    """Advances, declines and routes workflow instances back through their steps."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        cache: CacheProtocol,
        publisher: IWorkflowEventPublisher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.sessions = sessions
        self.cache = cache
        self.publisher = publisher or LoggingEventPublisher()
        self.settings = settings or get_settings()

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[_UnitOfWork]:
        """Open a transaction; commit on success, roll back on any exception."""
        async with self.sessions.begin() as db:
            hierarchy = LocationHierarchy(db, self.cache, self.settings.cache_ttl_location_tree)
            yield _UnitOfWork(
                db=db,
                templates=WorkflowTemplateRepository(db),
                instances=WorkflowInstanceRepository(db),
                steps=WorkflowStepInstanceRepository(db),
                users=UserRepository(db),
                hierarchy=hierarchy,
                resolver=ApproverResolver(db, hierarchy),
                authority=DelegationAuthority(db, hierarchy, self.settings),
            )

    async def _publish(self, event: WorkflowChangeEvent | None) -> None:
        if event is not None:
            await self.publisher.publish(event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_instance(
        self,
        template_id: str,
        resource_id: str,
        resource_type: str,
        creator_id: str,
        fields: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """Create an UnderReview instance at step 1 with step 1 materialized pending.

        Raises:
            NotFoundError: Unknown template or creator.
            ValidationError: resource_type does not match the template.
            ConfigurationError: Template deprecated or without steps, or no
                workflow location can be determined.
        """
        async with self._unit_of_work() as uow:
            template = await uow.templates.get_or_raise(template_id)
            if template.status != TemplateStatus.ACTIVE.value:
                raise ConfigurationError(
                    "Workflow template is not active", template_id=template_id
                )
            if template.resource_type != resource_type:
                raise ValidationError(
                    "resource_type does not match the template",
                    field="resource_type",
                    expected=template.resource_type,
                )
            if await uow.templates.count_steps(template_id) == 0:
                raise ConfigurationError("Workflow template has no steps", template_id=template_id)
            creator = await uow.users.get_active(creator_id)
            if creator is None:
                raise NotFoundError("user", creator_id)
            location_id = template.location_id or creator.primary_location_id
            if location_id is None:
                raise ConfigurationError(
                    "Cannot determine workflow location: template has none and "
                    "creator has no primary location",
                    template_id=template_id,
                    creator_id=creator_id,
                )
            instance = await uow.instances.create(
                WorkflowInstance(
                    template_id=template_id,
                    resource_id=resource_id,
                    resource_type=resource_type,
                    created_by=creator_id,
                    location_id=location_id,
                    current_step_order=1,
                    status=InstanceStatus.UNDER_REVIEW.value,
                    request_fields=fields or None,
                )
            )
            await uow.steps.materialize(instance.id, 1)
            logger.info(
                "Workflow instance started: id=%s template=%s resource=%s/%s creator=%s",
                instance.id,
                template_id,
                resource_type,
                resource_id,
                creator_id,
            )
            return self._state(instance)

    async def resubmit(
        self, instance_id: str, actor_id: str, *, expected_version: int | None = None
    ) -> TransitionResult:
        """Return a Draft instance (routed back to its creator) to UnderReview at step 1.

        Raises:
            NotFoundError: Unknown instance.
            ConflictError: Instance is not Draft, or expected_version is stale.
            AuthorizationError: actor is not the creator.
        """
        async with self._unit_of_work() as uow:
            instance = await uow.instances.get_or_raise(instance_id)
            if instance.status != InstanceStatus.DRAFT.value:
                raise ConflictError(
                    "Only a Draft instance can be resubmitted",
                    instance_id=instance_id,
                    status=instance.status,
                )
            self._check_version(instance, expected_version)
            if actor_id != instance.created_by:
                raise AuthorizationError(
                    "Only the creator can resubmit", actor_id=actor_id, instance_id=instance_id
                )
            if not await uow.instances.transition(
                instance,
                expected_status=InstanceStatus.DRAFT,
                status=InstanceStatus.UNDER_REVIEW.value,
                current_step_order=1,
            ):
                raise self._stale(instance)
            await uow.steps.materialize(instance_id, 1)
            logger.info("Workflow instance resubmitted: id=%s by=%s", instance_id, actor_id)
            return self._state(instance)

    # ------------------------------------------------------------------
    # Step actions
    # ------------------------------------------------------------------

    async def approve_step(
        self,
        instance_id: str,
        step_order: int,
        actor_id: str,
        comment: str | None = None,
        *,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Approve the current step; advance, or finish with Approved on the final step.

        Raises:
            NotFoundError: Unknown instance or step.
            ConflictError: Terminal/Draft instance, step_order is not current,
                stale expected_version, or a concurrent transition won.
            AuthorizationError: actor is neither resolved nor authorized.
            ConfigurationError: No workflow location can be determined.
        """
        async with self._unit_of_work() as uow:
            result = await self._approve(
                uow, instance_id, step_order, actor_id, comment, expected_version=expected_version
            )
        await self._publish(result.event)
        return result

    async def decline_step(
        self,
        instance_id: str,
        step_order: int,
        actor_id: str,
        comment: str,
        *,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Decline the current step; the instance becomes Declined (terminal).

        Raises:
            ValidationError: Missing comment, or the step does not allow decline.
            Others as approve_step.
        """
        async with self._unit_of_work() as uow:
            instance, step, location_id = await self._load_current(
                uow, instance_id, step_order, expected_version
            )
            text = _require_comment(comment)
            if not step.allow_decline:
                raise ValidationError(
                    "This step does not allow decline", field="step_order", step_order=step_order
                )
            await self._authorize(uow, instance, step, location_id, actor_id)
            now = utc_now()
            if not await uow.instances.transition(
                instance,
                expected_status=InstanceStatus.UNDER_REVIEW,
                status=InstanceStatus.DECLINED.value,
            ):
                raise self._stale(instance)
            await self._record(uow, instance_id, step_order, StepStatus.DECLINED, actor_id, now, text)
            event = WorkflowChangeEvent(
                instance_id=instance_id,
                step_order=step_order,
                action=StepAction.DECLINED,
                actor_id=actor_id,
                comment=text,
                timestamp=now,
            )
            logger.info(
                "Workflow step declined: instance=%s step=%s actor=%s",
                instance_id,
                step_order,
                actor_id,
            )
            result = self._state(instance, event)
        await self._publish(event)
        return result

    async def route_back(
        self,
        instance_id: str,
        target_step_order: int,
        actor_id: str,
        comment: str,
        *,
        expected_version: int | None = None,
    ) -> TransitionResult:
        """Send the instance back to target_step_order (0 = the creator, Draft).

        Every step instance with step_order >= target is reset to pending.
        The actor must be authorized for the current step.

        Raises:
            ValidationError: Missing comment, target outside [0, current], or
                the current step does not allow adjustment.
            Others as approve_step.
        """
        async with self._unit_of_work() as uow:
            instance = await uow.instances.get_or_raise(instance_id)
            current = instance.current_step_order
            instance, step, location_id = await self._load_current(
                uow, instance_id, current, expected_version
            )
            text = _require_comment(comment)
            if not 0 <= target_step_order <= current:
                raise ValidationError(
                    f"target_step_order must be between 0 and {current}",
                    field="target_step_order",
                    target_step_order=target_step_order,
                    current_step_order=current,
                )
            if not step.allow_adjust:
                raise ValidationError(
                    "This step does not allow routing back", field="step_order", step_order=current
                )
            await self._authorize(uow, instance, step, location_id, actor_id)
            values: dict[str, Any] = {"current_step_order": target_step_order}
            if target_step_order == 0:
                values["status"] = InstanceStatus.DRAFT.value
            if not await uow.instances.transition(
                instance, expected_status=InstanceStatus.UNDER_REVIEW, **values
            ):
                raise self._stale(instance)
            await uow.steps.reset_from(instance_id, target_step_order)
            if target_step_order > 0:
                await uow.steps.materialize(instance_id, target_step_order)
            now = utc_now()
            event = WorkflowChangeEvent(
                instance_id=instance_id,
                step_order=target_step_order,
                action=StepAction.ROUTED_BACK,
                actor_id=actor_id,
                comment=text,
                timestamp=now,
            )
            logger.info(
                "Workflow routed back: instance=%s from=%s to=%s actor=%s",
                instance_id,
                current,
                target_step_order,
                actor_id,
            )
            result = self._state(instance, event)
        await self._publish(event)
        return result

    async def auto_run(
        self,
        instance_id: str,
        operator_id: str,
        max_steps: int | None = None,
    ) -> AutoRunResult:
        """Approve successive steps as the first authorized candidate (ascending id).

        Administrative capability: operator_id must hold the auto-run
        permission. Each step commits on its own, so progress made before a
        failure is kept. Every approval records the impersonated approver as
        acted_by and the operator as performed_by.

        Raises:
            AuthorizationError: Operator lacks the auto-run permission.
            ValidationError: max_steps < 1.
            ConfigurationError: A step has no candidates or no authorized candidate.
            AutoRunStepLimitError: max_steps approvals without reaching a terminal state.
            Any error of approve_step. Errors raised after the run started carry
            halted_at_step and steps_performed in details.
        """
        max_steps = max_steps if max_steps is not None else self.settings.auto_run_default_max_steps
        if max_steps < 1:
            raise ValidationError("max_steps must be >= 1", field="max_steps")
        async with self._unit_of_work() as uow:
            await self._authorize_operator(uow, operator_id)

        performed = 0
        approvers: list[str] = []
        step_order: int | None = None
        try:
            while performed < max_steps:
                async with self._unit_of_work() as uow:
                    instance = await uow.instances.get_or_raise(instance_id)
                    if instance.status != InstanceStatus.UNDER_REVIEW.value:
                        if performed == 0:
                            raise ConflictError(
                                "Auto-run requires an instance under review",
                                instance_id=instance_id,
                                status=instance.status,
                            )
                        break
                    step_order = instance.current_step_order
                    approver = await self._pick_approver(uow, instance, step_order)
                    result = await self._approve(
                        uow,
                        instance_id,
                        step_order,
                        approver,
                        f"{AUTO_RUN_COMMENT_PREFIX} (operator {operator_id})",
                        performed_by=operator_id,
                        pre_authorized=True,
                    )
                await self._publish(result.event)
                performed += 1
                approvers.append(approver)
                if result.status.is_terminal:
                    break
        except ApprovalsException as exc:
            exc.details.setdefault("halted_at_step", step_order)
            exc.details["steps_performed"] = performed
            logger.warning(
                "Auto-run halted: instance=%s step=%s performed=%d error=%s",
                instance_id,
                step_order,
                performed,
                exc.error_code,
            )
            raise

        async with self._unit_of_work() as uow:
            instance = await uow.instances.get_or_raise(instance_id)
        status = InstanceStatus(instance.status)
        if status is InstanceStatus.UNDER_REVIEW:
            logger.warning(
                "Auto-run step limit reached: instance=%s max_steps=%d step=%s",
                instance_id,
                max_steps,
                instance.current_step_order,
            )
            raise AutoRunStepLimitError(instance_id, max_steps, instance.current_step_order)
        logger.info(
            "Auto-run finished: instance=%s status=%s steps=%d operator=%s",
            instance_id,
            status.value,
            performed,
            operator_id,
        )
        return AutoRunResult(
            instance_id=instance_id,
            steps_performed=performed,
            status=status,
            current_step_order=instance.current_step_order,
            approvers=tuple(approvers),
        )

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    async def get_read_model(self, instance_id: str) -> WorkflowReadModel:
        """Instance status plus one entry per template step with its resolved approvers."""
        async with self._unit_of_work() as uow:
            instance = await uow.instances.get_or_raise(instance_id)
            location_id = await self._workflow_location(uow, instance)
            context = self._context(instance, location_id)
            records = {s.step_order: s for s in await uow.steps.list_for_instance(instance_id)}
            steps: list[StepReadModel] = []
            for row in await uow.templates.get_steps(instance.template_id):
                record = records.get(row.step_order)
                steps.append(
                    StepReadModel(
                        step_order=row.step_order,
                        status=StepStatus(record.status) if record else StepStatus.PENDING,
                        resolved_approvers=tuple(
                            await uow.resolver.resolve_ordered(row.to_config(), context)
                        ),
                        acted_by=record.acted_by if record else None,
                        acted_at=ensure_utc(record.acted_at) if record else None,
                        comment=record.comment if record else None,
                        performed_by=record.performed_by if record else None,
                    )
                )
            return WorkflowReadModel(
                instance_id=instance.id,
                status=InstanceStatus(instance.status),
                current_step_order=instance.current_step_order,
                version=instance.version,
                steps=steps,
            )

    async def list_pending_for(self, actor_id: str) -> list[PendingApproval]:
        """Instances under review whose current step resolves actor_id, newest first.

        Only resolved approvers are listed. Delegates act through
        check_authority and do not see delegated work here.
        """
        pending: list[PendingApproval] = []
        async with self._unit_of_work() as uow:
            for instance in await uow.instances.list_under_review():
                order = instance.current_step_order
                record = await uow.steps.get(instance.id, order)
                if record is not None and record.status != StepStatus.PENDING.value:
                    continue
                try:
                    location_id = await self._workflow_location(uow, instance)
                except ConfigurationError:
                    logger.warning(
                        "Pending scan skipped instance without location: %s", instance.id
                    )
                    continue
                step = await uow.templates.get_step_config(instance.template_id, order)
                candidates = await uow.resolver.resolve(step, self._context(instance, location_id))
                if actor_id not in candidates:
                    continue
                template = await uow.templates.get_or_raise(instance.template_id)
                pending.append(
                    PendingApproval(
                        instance_id=instance.id,
                        template_id=template.id,
                        template_name=template.name,
                        resource_type=instance.resource_type,
                        resource_id=instance.resource_id,
                        creator_id=instance.created_by,
                        current_step_order=order,
                        total_steps=await uow.templates.count_steps(template.id),
                        required_permission=step.required_permission,
                        version=instance.version,
                        created_at=ensure_utc(instance.created_at),
                    )
                )
        return pending

    async def preview_approvers(
        self,
        template_id: str,
        creator_id: str,
        fields: Mapping[str, Any] | None = None,
    ) -> list[StepPreview]:
        """Resolve every step of a template as if creator_id started it now. Writes nothing.

        Raises:
            NotFoundError: Unknown template or creator.
            ConfigurationError: Neither the template nor the creator has a location.
        """
        async with self._unit_of_work() as uow:
            template = await uow.templates.get_or_raise(template_id)
            creator = await uow.users.get_or_raise(creator_id)
            location_id = template.location_id or creator.primary_location_id
            if location_id is None:
                raise ConfigurationError(
                    "Cannot determine workflow location for preview",
                    template_id=template_id,
                    creator_id=creator_id,
                )
            context = ResolutionContext(
                creator_id=creator_id,
                instance_id=None,
                location_id=location_id,
                fields=fields or {},
            )
            previews: list[StepPreview] = []
            for row in await uow.templates.get_steps(template_id):
                approvers = await uow.resolver.resolve_ordered(row.to_config(), context)
                previews.append(
                    StepPreview(
                        step_order=row.step_order,
                        required_permission=row.required_permission,
                        resolved_approvers=tuple(approvers),
                    )
                )
            return previews

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _approve(
        self,
        uow: _UnitOfWork,
        instance_id: str,
        step_order: int,
        actor_id: str,
        comment: str | None,
        *,
        expected_version: int | None = None,
        performed_by: str | None = None,
        pre_authorized: bool = False,
    ) -> TransitionResult:
        instance, step, location_id = await self._load_current(
            uow, instance_id, step_order, expected_version
        )
        if not pre_authorized:
            await self._authorize(uow, instance, step, location_id, actor_id)
        is_final = step_order >= await uow.templates.count_steps(instance.template_id)
        values: dict[str, Any] = (
            {"status": InstanceStatus.APPROVED.value}
            if is_final
            else {"current_step_order": step_order + 1}
        )
        if not await uow.instances.transition(
            instance, expected_status=InstanceStatus.UNDER_REVIEW, **values
        ):
            raise self._stale(instance)
        now = utc_now()
        await self._record(
            uow, instance_id, step_order, StepStatus.APPROVED, actor_id, now, comment, performed_by
        )
        if not is_final:
            await uow.steps.materialize(instance_id, step_order + 1)
        logger.info(
            "Workflow step approved: instance=%s step=%s actor=%s final=%s",
            instance_id,
            step_order,
            actor_id,
            is_final,
        )
        event = WorkflowChangeEvent(
            instance_id=instance_id,
            step_order=step_order,
            action=StepAction.APPROVED,
            actor_id=actor_id,
            comment=comment,
            timestamp=now,
            performed_by=performed_by,
        )
        return self._state(instance, event)

    async def _record(
        self,
        uow: _UnitOfWork,
        instance_id: str,
        step_order: int,
        status: StepStatus,
        actor_id: str,
        at: datetime,
        comment: str | None,
        performed_by: str | None = None,
    ) -> None:
        if await uow.steps.get(instance_id, step_order) is None:
            await uow.steps.materialize(instance_id, step_order)
        if not await uow.steps.record_action(
            instance_id,
            step_order,
            status=status,
            acted_by=actor_id,
            acted_at=at,
            comment=comment,
            performed_by=performed_by,
        ):
            raise ConflictError(
                "Step has already been acted on", instance_id=instance_id, step_order=step_order
            )

    async def _load_current(
        self,
        uow: _UnitOfWork,
        instance_id: str,
        step_order: int,
        expected_version: int | None,
    ) -> tuple[WorkflowInstance, StepConfig, str]:
        """Load an instance that may be acted on at step_order, or raise."""
        instance = await uow.instances.get_or_raise(instance_id)
        status = InstanceStatus(instance.status)
        if status.is_terminal:
            raise ConflictError(
                f"Instance is {status.value}; no further changes are allowed",
                instance_id=instance_id,
                status=status.value,
            )
        if status is not InstanceStatus.UNDER_REVIEW:
            raise ConflictError(
                "Instance is not under review", instance_id=instance_id, status=status.value
            )
        self._check_version(instance, expected_version)
        if step_order != instance.current_step_order:
            raise ConflictError(
                "Step is not the current step; refresh and retry",
                instance_id=instance_id,
                step_order=step_order,
                current_step_order=instance.current_step_order,
            )
        step = await uow.templates.get_step_config(instance.template_id, step_order)
        location_id = await self._workflow_location(uow, instance)
        return instance, step, location_id

    async def _workflow_location(self, uow: _UnitOfWork, instance: WorkflowInstance) -> str:
        if instance.location_id:
            return instance.location_id
        template = await uow.templates.get_by_id(instance.template_id)
        if template is not None and template.location_id:
            return template.location_id
        creator = await uow.users.get_by_id(instance.created_by)
        if creator is not None and creator.primary_location_id:
            return creator.primary_location_id
        raise ConfigurationError(
            "Cannot determine workflow location", instance_id=instance.id
        )

    @staticmethod
    def _context(instance: WorkflowInstance, location_id: str) -> ResolutionContext:
        return ResolutionContext(
            creator_id=instance.created_by,
            instance_id=instance.id,
            location_id=location_id,
            fields=instance.request_fields or {},
        )

    async def _authorize(
        self,
        uow: _UnitOfWork,
        instance: WorkflowInstance,
        step: StepConfig,
        location_id: str,
        actor_id: str,
    ) -> None:
        """Resolved approvers may act; otherwise DelegationAuthority must authorize."""
        candidates = await uow.resolver.resolve(step, self._context(instance, location_id))
        if actor_id in candidates:
            return
        authority = await uow.authority.check_authority(
            actor_id, step.required_permission, location_id
        )
        if authority.authorized:
            logger.debug(
                "Actor authorized outside resolved set: actor=%s source=%s delegation=%s",
                actor_id,
                authority.source.value if authority.source else None,
                authority.delegation_id,
            )
            return
        logger.info(
            "Workflow action rejected (not authorized): instance=%s step=%s actor=%s",
            instance.id,
            step.step_order,
            actor_id,
        )
        raise AuthorizationError(
            instance_id=instance.id,
            step_order=step.step_order,
            actor_id=actor_id,
            required_permission=step.required_permission,
        )

    async def _authorize_operator(self, uow: _UnitOfWork, operator_id: str) -> None:
        if await uow.users.get_active(operator_id) is not None:
            if await uow.authority.is_admin(operator_id):
                return
            if await uow.authority.user_roles.get_grants(
                operator_id, self.settings.auto_run_permission
            ):
                return
        logger.info(
            "Auto-run rejected: operator=%s lacks %s",
            operator_id,
            self.settings.auto_run_permission,
        )
        raise AuthorizationError(
            "Operator is not allowed to auto-run workflows",
            operator_id=operator_id,
            required_permission=self.settings.auto_run_permission,
        )

    async def _pick_approver(
        self, uow: _UnitOfWork, instance: WorkflowInstance, step_order: int
    ) -> str:
        """First resolved candidate, by ascending id, that check_authority accepts."""
        step = await uow.templates.get_step_config(instance.template_id, step_order)
        location_id = await self._workflow_location(uow, instance)
        candidates = await uow.resolver.resolve_ordered(step, self._context(instance, location_id))
        if not candidates:
            raise ConfigurationError(
                "Step resolves no approver candidates",
                instance_id=instance.id,
                step_order=step_order,
                required_permission=step.required_permission,
            )
        for candidate in candidates:
            authority = await uow.authority.check_authority(
                candidate, step.required_permission, location_id
            )
            if authority.authorized:
                return candidate
        raise ConfigurationError(
            "No resolved candidate is authorized for this step",
            instance_id=instance.id,
            step_order=step_order,
            candidates=candidates,
        )

    @staticmethod
    def _check_version(instance: WorkflowInstance, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != instance.version:
            raise ConflictError(
                "Instance has changed; refresh and retry",
                instance_id=instance.id,
                expected_version=expected_version,
                actual_version=instance.version,
            )

    @staticmethod
    def _stale(instance: WorkflowInstance) -> ConflictError:
        logger.info("Workflow transition lost a concurrent update: instance=%s", instance.id)
        return ConflictError(
            "Instance was modified concurrently; refresh and retry", instance_id=instance.id
        )

    @staticmethod
    def _state(
        instance: WorkflowInstance, event: WorkflowChangeEvent | None = None
    ) -> TransitionResult:
        return TransitionResult(
            instance_id=instance.id,
            status=InstanceStatus(instance.status),
            current_step_order=instance.current_step_order,
            version=instance.version,
            event=event,
        )
