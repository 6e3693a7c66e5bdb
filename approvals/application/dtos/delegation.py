"""DTOs for delegation authority (no dependency on ORM)."""

from dataclasses import dataclass
from datetime import datetime

from approvals.domain.enums import AuthoritySource


@dataclass(frozen=True)
class AuthorityResult:
    """Outcome of an authority check. source is None when not authorized."""

    authorized: bool
    source: AuthoritySource | None = None
    delegation_id: str | None = None

    @classmethod
    def denied(cls) -> "AuthorityResult":
        return cls(authorized=False)

    @classmethod
    def direct(cls) -> "AuthorityResult":
        return cls(authorized=True, source=AuthoritySource.DIRECT)

    @classmethod
    def via_delegation(cls, delegation_id: str) -> "AuthorityResult":
        return cls(
            authorized=True,
            source=AuthoritySource.DELEGATION,
            delegation_id=delegation_id,
        )


@dataclass(frozen=True)
class DelegationResult:
    """Delegation read-model (result of create, revoke and list operations)."""

    id: str
    delegator_user_id: str
    delegate_user_id: str
    permission: str
    location_id: str | None
    include_descendants: bool
    valid_from: datetime
    valid_until: datetime
    status: str
    revoked_at: datetime | None
    created_by: str
    reason: str | None
