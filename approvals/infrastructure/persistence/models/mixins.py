"""Column mixins shared by the approval tables.

Every table keys on CUID2 strings. Soft-deleted rows keep their history
but drop out of approver resolution.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from approvals.shared.utils.generators import generate_cuid


class CuidMixin:
    """String primary key defaulting to a fresh CUID2."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class TimestampMixin:
    """created_at / updated_at, filled by the database."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class SoftDeleteMixin:
    """deleted_at marker; a non-null value excludes the row from resolution and authority."""

    @declared_attr
    def deleted_at(cls) -> Mapped[datetime | None]:
        return mapped_column(DateTime(timezone=True), nullable=True, index=True)


class VersionedMixin:
    """version counter starting at 1, bumped by each conditional UPDATE."""

    @declared_attr
    def version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=1, nullable=False)


class TimestampedModel(CuidMixin, TimestampMixin):
    """CUID id plus timestamps; the base of most approval tables."""

    __abstract__ = True
