"""Unit tests for step configuration: conditions, strategy union, rules and column mapping."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from approvals.domain.enums import LocationScope
from approvals.domain.step_config import (
    CombinedStrategy,
    Condition,
    ConditionalRule,
    ManagerStrategy,
    PermissionStrategy,
    RoleStrategy,
    StepConfig,
    validate_step_orders,
)


def _step(**overrides) -> StepConfig:
    data = {
        "step_order": 1,
        "required_permission": "leave.approve",
        "strategy": {"kind": "permission"},
    }
    data.update(overrides)
    return StepConfig.model_validate(data)


@pytest.mark.parametrize(
    ("operator", "value", "actual", "expected"),
    [
        ("eq", "annual", "annual", True),
        ("ne", "annual", "sick", True),
        ("gt", 5, 6, True),
        ("gt", 5, 5, False),
        ("gte", 5, 5, True),
        ("lt", 3, 2.5, True),
        ("lte", 3, 4, False),
        ("in", ["annual", "unpaid"], "unpaid", True),
        ("in", ["annual", "unpaid"], "sick", False),
    ],
)
def test_condition_operators(operator: str, value, actual, expected: bool) -> None:
    condition = Condition(field="days", operator=operator, value=value)
    assert condition.holds({"days": actual}) is expected


def test_condition_missing_field_never_matches() -> None:
    assert Condition(field="days", operator="ne", value=3).holds({}) is False


def test_condition_ordering_against_non_number_is_false() -> None:
    assert Condition(field="days", operator="gt", value=3).holds({"days": "10"}) is False


def test_condition_ordering_operator_requires_number() -> None:
    with pytest.raises(PydanticValidationError):
        Condition(field="days", operator="gt", value="five")


def test_condition_in_requires_list() -> None:
    with pytest.raises(PydanticValidationError):
        Condition(field="kind", operator="in", value="annual")


def test_strategy_union_is_discriminated_on_kind() -> None:
    assert isinstance(_step(strategy={"kind": "manager"}).strategy, ManagerStrategy)
    step = _step(strategy={"kind": "combined", "required_roles": ["hr", "director"]})
    assert isinstance(step.strategy, CombinedStrategy)
    assert step.strategy.required_roles == frozenset({"hr", "director"})


def test_unknown_strategy_kind_rejected() -> None:
    with pytest.raises(PydanticValidationError):
        _step(strategy={"kind": "round_robin"})


def test_role_strategy_requires_roles() -> None:
    with pytest.raises(PydanticValidationError):
        _step(strategy={"kind": "role", "required_roles": []})


def test_unknown_keys_rejected() -> None:
    with pytest.raises(PydanticValidationError):
        _step(strategy={"kind": "manager", "include_manager": True})


@pytest.mark.parametrize("permission", ["leave", "Leave.Approve", "leave approve", "leave."])
def test_required_permission_must_be_dotted_name(permission: str) -> None:
    with pytest.raises(PydanticValidationError):
        _step(required_permission=permission)


def test_step_order_must_be_positive() -> None:
    with pytest.raises(PydanticValidationError):
        _step(step_order=0)


def test_effective_strategy_defaults_to_step_strategy() -> None:
    step = _step(location_scope="same")
    effective = step.effective_strategy({"days": 1})
    assert isinstance(effective.strategy, PermissionStrategy)
    assert effective.location_scope is LocationScope.SAME
    assert effective.rule_index is None


def test_first_matching_rule_overrides_strategy_and_scope() -> None:
    step = _step(
        location_scope="same",
        conditional_rules=[
            {
                "condition": {"field": "days", "operator": "gt", "value": 10},
                "strategy": {"kind": "role", "required_roles": ["director"]},
                "location_scope": "all",
            },
            {
                "condition": {"field": "days", "operator": "gt", "value": 5},
                "strategy": {"kind": "manager"},
            },
        ],
    )
    long_leave = step.effective_strategy({"days": 15})
    assert isinstance(long_leave.strategy, RoleStrategy)
    assert long_leave.location_scope is LocationScope.ALL
    assert long_leave.rule_index == 0

    medium_leave = step.effective_strategy({"days": 7})
    assert isinstance(medium_leave.strategy, ManagerStrategy)
    assert medium_leave.location_scope is LocationScope.SAME
    assert medium_leave.rule_index == 1


def test_columns_mapping_restores_equal_config() -> None:
    step = StepConfig(
        step_order=2,
        required_permission="timesheet.approve",
        strategy=RoleStrategy(required_roles=frozenset({"supervisor"})),
        location_scope=LocationScope.DESCENDANTS,
        conditional_rules=(
            ConditionalRule(
                condition=Condition(field="hours", operator="gte", value=60),
                strategy=ManagerStrategy(),
            ),
        ),
        allow_decline=False,
    )
    columns = step.to_columns()
    assert columns["approver_strategy"] == "role"
    assert columns["required_roles"] == ["supervisor"]
    assert StepConfig.from_columns(**columns) == step


@pytest.mark.parametrize(
    ("orders", "valid"),
    [([1], True), ([2, 1, 3], True), ([1, 3], False), ([0, 1], False), ([1, 1], False), ([], True)],
)
def test_validate_step_orders(orders: list[int], valid: bool) -> None:
    assert validate_step_orders(orders) is valid
