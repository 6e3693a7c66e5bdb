"""Integration tests for DelegationAuthority: direct grants, delegations, overlap, expiry."""

from datetime import UTC, datetime, timedelta

import pytest

from approvals.domain.enums import AuthoritySource, DelegationStatus, RecordStatus
from approvals.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    OverlappingDelegationError,
    ValidationError,
)
from approvals.infrastructure.persistence.models import Delegation
from approvals.infrastructure.services import DelegationAuthority

PERMISSION = "leave.approve"
T0 = datetime(2030, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
async def people(org) -> dict[str, str]:
    """HQ -> Branch -> Sub, HQ -> Other; alice approves at Branch and below, carol at Branch only."""
    hq = await org.location("HQ")
    branch = await org.location("Branch", hq)
    sub = await org.location("Sub", branch)
    other = await org.location("Other", hq)
    approver = await org.role("leave_approver", [PERMISSION])
    admin_role = await org.role("administrator", ["system.admin"])
    alice = await org.user("alice", location=branch)
    bob = await org.user("bob", location=branch)
    carol = await org.user("carol", location=branch)
    admin = await org.user("admin", location=hq)
    dave = await org.user("dave", location=hq, status=RecordStatus.INACTIVE)
    await org.assign(alice, approver, location=branch, include_descendants=True)
    await org.assign(carol, approver, location=branch)
    await org.assign(admin, admin_role)
    await org.assign(dave, approver)
    return {
        "hq": hq,
        "branch": branch,
        "sub": sub,
        "other": other,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "admin": admin,
        "dave": dave,
    }


async def _delegate(
    authority: DelegationAuthority,
    people: dict[str, str],
    *,
    delegate: str = "bob",
    start: datetime = T0,
    end: datetime = T0 + timedelta(days=5),
    location: str | None = "branch",
    include_descendants: bool = True,
):
    return await authority.create_delegation(
        actor_id=people["alice"],
        delegator_user_id=people["alice"],
        delegate_user_id=people[delegate],
        permission=PERMISSION,
        valid_from=start,
        valid_until=end,
        location_id=people[location] if location else None,
        include_descendants=include_descendants,
    )


def test_is_valid_window_is_closed() -> None:
    delegation = Delegation(
        status=DelegationStatus.ACTIVE.value,
        valid_from=T0,
        valid_until=T0 + timedelta(days=1),
        revoked_at=None,
    )
    assert DelegationAuthority.is_valid(delegation, T0) is True
    assert DelegationAuthority.is_valid(delegation, T0 + timedelta(days=1)) is True
    assert DelegationAuthority.is_valid(delegation, T0 + timedelta(days=1, microseconds=1)) is False
    assert DelegationAuthority.is_valid(delegation, T0 - timedelta(microseconds=1)) is False


async def test_direct_grant_covers_scope(authority: DelegationAuthority, people) -> None:
    direct = await authority.check_authority(people["alice"], PERMISSION, people["sub"])
    assert direct.authorized is True
    assert direct.source is AuthoritySource.DIRECT
    assert direct.delegation_id is None
    assert (await authority.check_authority(people["carol"], PERMISSION, people["branch"])).authorized
    assert not (await authority.check_authority(people["carol"], PERMISSION, people["sub"])).authorized
    assert not (await authority.check_authority(people["alice"], PERMISSION, people["other"])).authorized


async def test_admin_is_authorized_everywhere(authority: DelegationAuthority, people) -> None:
    result = await authority.check_authority(people["admin"], "timesheet.approve", people["other"])
    assert result.authorized is True
    assert result.source is AuthoritySource.DIRECT


async def test_inactive_user_is_never_authorized(authority: DelegationAuthority, people) -> None:
    result = await authority.check_authority(people["dave"], PERMISSION, people["hq"])
    assert result.authorized is False
    assert result.source is None


async def test_delegation_authorizes_within_scope(authority: DelegationAuthority, people) -> None:
    delegation = await _delegate(authority, people)
    now = T0 + timedelta(days=1)
    result = await authority.check_authority(people["bob"], PERMISSION, people["sub"], now=now)
    assert result.authorized is True
    assert result.source is AuthoritySource.DELEGATION
    assert result.delegation_id == delegation.id
    outside = await authority.check_authority(people["bob"], PERMISSION, people["other"], now=now)
    assert outside.authorized is False


async def test_delegation_valid_through_valid_until_inclusive(
    authority: DelegationAuthority, people
) -> None:
    end = T0 + timedelta(days=2)
    await _delegate(authority, people, end=end)
    at_end = await authority.check_authority(people["bob"], PERMISSION, people["branch"], now=end)
    assert at_end.authorized is True
    after = await authority.check_authority(
        people["bob"], PERMISSION, people["branch"], now=end + timedelta(microseconds=1)
    )
    assert after.authorized is False


async def test_delegation_not_yet_valid(authority: DelegationAuthority, people) -> None:
    await _delegate(authority, people)
    early = await authority.check_authority(
        people["bob"], PERMISSION, people["branch"], now=T0 - timedelta(seconds=1)
    )
    assert early.authorized is False


async def test_direct_authority_independent_of_delegation_state(
    authority: DelegationAuthority, people
) -> None:
    delegation = await _delegate(authority, people, delegate="carol", include_descendants=False)
    now = T0 + timedelta(days=1)
    active = await authority.check_authority(people["carol"], PERMISSION, people["branch"], now=now)
    assert active.source is AuthoritySource.DIRECT
    await authority.revoke_delegation(delegation.id, people["alice"])
    revoked = await authority.check_authority(people["carol"], PERMISSION, people["branch"], now=now)
    assert revoked.authorized is True
    assert revoked.source is AuthoritySource.DIRECT


async def test_revoked_delegation_never_authorizes(authority: DelegationAuthority, people) -> None:
    delegation = await _delegate(authority, people)
    revoked = await authority.revoke_delegation(delegation.id, people["alice"])
    assert revoked.status == DelegationStatus.REVOKED.value
    assert revoked.revoked_at is not None
    result = await authority.check_authority(
        people["bob"], PERMISSION, people["branch"], now=T0 + timedelta(days=1)
    )
    assert result.authorized is False


async def test_has_overlap(authority: DelegationAuthority, people) -> None:
    await _delegate(authority, people, end=T0 + timedelta(days=5))
    args = (people["alice"], people["bob"], PERMISSION)
    # Intersecting window, same location
    assert await authority.has_overlap(
        *args, people["branch"], False, T0 + timedelta(days=3), T0 + timedelta(days=8)
    )
    # Intersecting window, global location
    assert await authority.has_overlap(
        *args, None, False, T0 + timedelta(days=1), T0 + timedelta(days=2)
    )
    # Touching endpoints overlap
    assert await authority.has_overlap(
        *args, people["branch"], False, T0 + timedelta(days=5), T0 + timedelta(days=6)
    )
    # Disjoint window
    assert not await authority.has_overlap(
        *args, people["branch"], False, T0 + timedelta(days=6), T0 + timedelta(days=9)
    )
    # Different delegate
    assert not await authority.has_overlap(
        people["alice"], people["carol"], PERMISSION, people["branch"], False,
        T0, T0 + timedelta(days=1),
    )


async def test_overlapping_delegation_refused_at_create(
    authority: DelegationAuthority, people
) -> None:
    await _delegate(authority, people)
    with pytest.raises(OverlappingDelegationError) as exc_info:
        await _delegate(authority, people, start=T0 + timedelta(days=1), end=T0 + timedelta(days=9))
    assert exc_info.value.error_code == "CONFLICT"


async def test_disjoint_scopes_do_not_overlap(authority: DelegationAuthority, people) -> None:
    await _delegate(authority, people, location="sub", include_descendants=False)
    await authority.create_delegation(
        actor_id=people["admin"],
        delegator_user_id=people["alice"],
        delegate_user_id=people["bob"],
        permission=PERMISSION,
        valid_from=T0,
        valid_until=T0 + timedelta(days=5),
        location_id=people["branch"],
        include_descendants=False,
    )
    assert len(await authority.list_by_delegator(people["alice"])) == 2


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"delegate_user_id": "alice"}, "delegate_user_id"),
        ({"valid_until": T0}, "valid_until"),
        ({"permission": "leave.unknown"}, "permission"),
        ({"location_id": None}, "permission"),
        ({"delegate_user_id": "dave"}, "delegate_user_id"),
    ],
)
async def test_create_delegation_validation(
    authority: DelegationAuthority, people, overrides: dict, field: str
) -> None:
    kwargs = {
        "actor_id": people["alice"],
        "delegator_user_id": people["alice"],
        "delegate_user_id": people["bob"],
        "permission": PERMISSION,
        "valid_from": T0,
        "valid_until": T0 + timedelta(days=1),
        "location_id": people["branch"],
    }
    for key, value in overrides.items():
        kwargs[key] = people.get(value, value) if isinstance(value, str) else value
    with pytest.raises(ValidationError) as exc_info:
        await authority.create_delegation(**kwargs)
    assert exc_info.value.details["field"] == field


async def test_delegator_without_permission_cannot_delegate(
    authority: DelegationAuthority, people
) -> None:
    with pytest.raises(ValidationError):
        await authority.create_delegation(
            actor_id=people["bob"],
            delegator_user_id=people["bob"],
            delegate_user_id=people["carol"],
            permission=PERMISSION,
            valid_from=T0,
            valid_until=T0 + timedelta(days=1),
            location_id=people["branch"],
        )


async def test_only_admin_may_create_on_behalf(authority: DelegationAuthority, people) -> None:
    kwargs = {
        "delegator_user_id": people["alice"],
        "delegate_user_id": people["bob"],
        "permission": PERMISSION,
        "valid_from": T0,
        "valid_until": T0 + timedelta(days=1),
        "location_id": people["branch"],
    }
    with pytest.raises(AuthorizationError):
        await authority.create_delegation(actor_id=people["carol"], **kwargs)
    created = await authority.create_delegation(actor_id=people["admin"], **kwargs)
    assert created.created_by == people["admin"]
    assert created.delegator_user_id == people["alice"]


async def test_revoke_rules(authority: DelegationAuthority, people) -> None:
    delegation = await _delegate(authority, people)
    with pytest.raises(AuthorizationError):
        await authority.revoke_delegation(delegation.id, people["bob"])
    await authority.revoke_delegation(delegation.id, people["admin"])
    with pytest.raises(ConflictError):
        await authority.revoke_delegation(delegation.id, people["alice"])
    with pytest.raises(NotFoundError):
        await authority.revoke_delegation("missing", people["alice"])


async def test_expire_delegations_is_idempotent(authority: DelegationAuthority, people) -> None:
    await _delegate(authority, people, end=T0 + timedelta(days=1))
    await _delegate(authority, people, delegate="carol", end=T0 + timedelta(days=1))
    await _delegate(
        authority, people, start=T0 + timedelta(days=2), end=T0 + timedelta(days=30)
    )
    sweep_at = T0 + timedelta(days=3)
    assert await authority.expire_delegations(sweep_at) == 2
    assert await authority.expire_delegations(sweep_at) == 0

    remaining = await authority.list_by_delegator(people["alice"])
    assert [d.status for d in remaining] == [DelegationStatus.ACTIVE.value]
    everything = await authority.list_by_delegator(people["alice"], include_expired=True)
    assert len(everything) == 3
    expired = await authority.list_by_delegator(people["alice"], status=DelegationStatus.EXPIRED)
    assert {d.delegate_user_id for d in expired} == {people["bob"], people["carol"]}


async def test_list_for_delegate_orders_by_valid_until(
    authority: DelegationAuthority, people
) -> None:
    later = await _delegate(authority, people, location="sub", include_descendants=False,
                            end=T0 + timedelta(days=9))
    sooner = await _delegate(authority, people, location="branch", include_descendants=False,
                             end=T0 + timedelta(days=4))
    now = T0 + timedelta(days=1)
    usable = await authority.list_for_delegate(people["bob"], PERMISSION, now=now)
    assert [d.id for d in usable] == [sooner.id, later.id]
    at_sub = await authority.list_for_delegate(
        people["bob"], PERMISSION, location_id=people["sub"], now=now
    )
    assert [d.id for d in at_sub] == [later.id]
