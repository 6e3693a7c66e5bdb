"""Role ORM model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import RecordStatus
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import TimestampedModel


class Role(TimestampedModel, Base):
    """Role. Table: role. Grants its permissions only while status is active."""

    __tablename__ = "role"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=RecordStatus.ACTIVE.value
    )
