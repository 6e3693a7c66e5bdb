"""Delegation ORM model."""

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import DelegationStatus
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import TimestampedModel


class Delegation(TimestampedModel, Base):
    """Delegation of one permission from delegator to delegate. Table: delegation.

    location_id null means global scope. Mutated only to revoke or expire.
    """

    __tablename__ = "delegation"

    delegator_user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    delegate_user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    permission: Mapped[str] = mapped_column(String, nullable=False)
    location_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("location.id", ondelete="CASCADE"), nullable=True
    )
    include_descendants: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=DelegationStatus.ACTIVE.value
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    revoked_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="RESTRICT"), nullable=False
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("valid_from < valid_until", name="ck_delegation_window"),
        Index("ix_delegation_delegate", "delegate_user_id", "permission", "status"),
        Index(
            "ix_delegation_pair",
            "delegator_user_id",
            "delegate_user_id",
            "permission",
        ),
        Index("ix_delegation_status_until", "status", "valid_until"),
    )
