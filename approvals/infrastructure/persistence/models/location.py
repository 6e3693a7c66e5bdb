"""Location ORM model (materialized-path organizational tree)."""

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from approvals.domain.enums import RecordStatus
from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import TimestampedModel


class Location(TimestampedModel, Base):
    """Location. Table: location.

    path is the dot-separated chain of numeric segments from the root
    (e.g. '1.2.3'); level is path depth minus one.
    """

    __tablename__ = "location"

    name: Mapped[str] = mapped_column(String, nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("location.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    path: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=RecordStatus.ACTIVE.value
    )

    __table_args__ = (Index("ix_location_path_level", "path", "level"),)
