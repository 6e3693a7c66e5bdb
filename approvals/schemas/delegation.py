"""Delegation API schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from approvals.domain.enums import DelegationStatus


class DelegationCreateRequest(BaseModel):
    """Request body for creating a delegation.

    delegator_user_id defaults to the acting user; only an administrator may
    create a delegation on behalf of someone else.
    """

    delegate_user_id: str = Field(..., min_length=1)
    permission: str = Field(..., min_length=1, max_length=128)
    valid_from: datetime
    valid_until: datetime
    delegator_user_id: str | None = None
    location_id: str | None = None
    include_descendants: bool = False
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _window(self) -> "DelegationCreateRequest":
        if self.valid_from.tzinfo is None or self.valid_until.tzinfo is None:
            raise ValueError("valid_from and valid_until must include a timezone")
        return self


class DelegationListParams(BaseModel):
    view: Literal["received", "granted"] = "received"
    permission: str | None = None
    location_id: str | None = None
    status: DelegationStatus | None = None
    include_expired: bool = False


class DelegationResponse(BaseModel):
    """Delegation response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    delegator_user_id: str
    delegate_user_id: str
    permission: str
    location_id: str | None
    include_descendants: bool
    valid_from: datetime
    valid_until: datetime
    status: DelegationStatus
    revoked_at: datetime | None
    created_by: str
    reason: str | None
