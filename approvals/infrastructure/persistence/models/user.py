"""User ORM model (identity read model consumed by the approval core)."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import RecordStatus
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import (
    SoftDeleteMixin,
    TimestampedModel,
)


class User(TimestampedModel, SoftDeleteMixin, Base):
    """User. Table: app_user. Only active, non-deleted users can approve."""

    __tablename__ = "app_user"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    manager_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    primary_location_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("location.id", ondelete="SET NULL"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=RecordStatus.ACTIVE.value
    )
