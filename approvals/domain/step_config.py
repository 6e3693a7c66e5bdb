"""Workflow step configuration: closed, schema-validated tagged structures.

Step configuration is validated once, when a template is written, and
rebuilt from stored columns on read. Approver strategies form a tagged
union on ``kind``; conditional rules are an ordered list of
``condition -> strategy override`` pairs evaluated against request fields.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from approvals.domain.enums import ApproverStrategyKind, LocationScope

PERMISSION_NAME_PATTERN = r"^[a-z0-9_]+(\.[a-z0-9_]+)+$"

ComparisonOperator = Literal["eq", "ne", "gt", "gte", "lt", "lte", "in"]

_ORDERING_OPERATORS = frozenset({"gt", "gte", "lt", "lte"})


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class Condition(BaseModel):
    """Comparison of one request field against a literal value.

    A missing field never satisfies a condition. Ordering operators only
    compare numbers; ``in`` requires a list value.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = Field(..., min_length=1, max_length=128)
    operator: ComparisonOperator
    value: Any

    @model_validator(mode="after")
    def check_operand(self) -> "Condition":
        if self.operator in _ORDERING_OPERATORS and not _is_number(self.value):
            raise ValueError(f"operator {self.operator!r} requires a numeric value")
        if self.operator == "in" and not isinstance(self.value, list | tuple):
            raise ValueError("operator 'in' requires a list value")
        return self

    def holds(self, fields: Mapping[str, Any]) -> bool:
        """Return whether the condition is satisfied by the given request fields."""
        if self.field not in fields:
            return False
        actual = fields[self.field]
        match self.operator:
            case "eq":
                return actual == self.value
            case "ne":
                return actual != self.value
            case "in":
                return actual in self.value
        if not _is_number(actual):
            return False
        match self.operator:
            case "gt":
                return actual > self.value
            case "gte":
                return actual >= self.value
            case "lt":
                return actual < self.value
            case "lte":
                return actual <= self.value
        return False


class PermissionStrategy(BaseModel):
    """Every in-scope user whose roles grant the step permission (optionally plus the creator's manager)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["permission"] = "permission"
    include_manager: bool = False


class ManagerStrategy(BaseModel):
    """The creator's direct manager, when that manager holds the step permission in scope."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["manager"] = "manager"


class RoleStrategy(BaseModel):
    """Users holding at least one of required_roles and the step permission, in scope."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["role"] = "role"
    required_roles: frozenset[str] = Field(..., min_length=1)


class CombinedStrategy(BaseModel):
    """Union of the manager and role strategies."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["combined"] = "combined"
    required_roles: frozenset[str] = Field(..., min_length=1)


ApproverStrategy = Annotated[
    PermissionStrategy | ManagerStrategy | RoleStrategy | CombinedStrategy,
    Field(discriminator="kind"),
]


class ConditionalRule(BaseModel):
    """When condition holds, strategy (and optionally location_scope) replace the step's own."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    condition: Condition
    strategy: ApproverStrategy
    location_scope: LocationScope | None = None


@dataclass(frozen=True)
class EffectiveStrategy:
    """Strategy and scope in force for one resolution."""

    strategy: PermissionStrategy | ManagerStrategy | RoleStrategy | CombinedStrategy
    location_scope: LocationScope
    rule_index: int | None = None


class StepConfig(BaseModel):
    """Validated configuration of one workflow step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_order: int = Field(..., ge=1)
    required_permission: str = Field(..., pattern=PERMISSION_NAME_PATTERN, max_length=128)
    strategy: ApproverStrategy
    location_scope: LocationScope = LocationScope.ALL
    conditional_rules: tuple[ConditionalRule, ...] = ()
    allow_decline: bool = True
    allow_adjust: bool = True

    def effective_strategy(self, fields: Mapping[str, Any]) -> EffectiveStrategy:
        """Return the first matching conditional override, else the step's declared strategy."""
        for index, rule in enumerate(self.conditional_rules):
            if rule.condition.holds(fields):
                return EffectiveStrategy(
                    strategy=rule.strategy,
                    location_scope=rule.location_scope or self.location_scope,
                    rule_index=index,
                )
        return EffectiveStrategy(strategy=self.strategy, location_scope=self.location_scope)

    def to_columns(self) -> dict[str, Any]:
        """Flatten to workflow_step column values."""
        required_roles = getattr(self.strategy, "required_roles", frozenset())
        return {
            "step_order": self.step_order,
            "required_permission": self.required_permission,
            "approver_strategy": self.strategy.kind,
            "include_manager": getattr(self.strategy, "include_manager", False),
            "required_roles": sorted(required_roles) or None,
            "location_scope": self.location_scope.value,
            "conditional_rules": [
                rule.model_dump(mode="json") for rule in self.conditional_rules
            ]
            or None,
            "allow_decline": self.allow_decline,
            "allow_adjust": self.allow_adjust,
        }

    @classmethod
    def from_columns(
        cls,
        *,
        step_order: int,
        required_permission: str,
        approver_strategy: str,
        include_manager: bool,
        required_roles: list[str] | None,
        location_scope: str,
        conditional_rules: list[dict[str, Any]] | None,
        allow_decline: bool,
        allow_adjust: bool,
    ) -> "StepConfig":
        """Rebuild from workflow_step column values (inverse of to_columns)."""
        kind = ApproverStrategyKind(approver_strategy)
        strategy: dict[str, Any] = {"kind": kind.value}
        if kind is ApproverStrategyKind.PERMISSION:
            strategy["include_manager"] = include_manager
        elif kind in (ApproverStrategyKind.ROLE, ApproverStrategyKind.COMBINED):
            strategy["required_roles"] = required_roles or []
        return cls.model_validate(
            {
                "step_order": step_order,
                "required_permission": required_permission,
                "strategy": strategy,
                "location_scope": location_scope,
                "conditional_rules": conditional_rules or [],
                "allow_decline": allow_decline,
                "allow_adjust": allow_adjust,
            }
        )


def validate_step_orders(step_orders: list[int]) -> bool:
    """Return whether step orders are exactly 1..n (contiguous ascending from 1, no duplicates)."""
    return sorted(step_orders) == list(range(1, len(step_orders) + 1))
