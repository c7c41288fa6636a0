"""SQLAlchemy model for open batch groups."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hera.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class BatchGroupModel(Base, TimestampMixin):
    """Database model for a pending batch group.

    At most one open group exists per key; the row is the lock that
    serializes concurrent offers for that key.
    """

    __tablename__ = "batch_groups"

    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "transaction_type",
            "batch_date",
            name="uq_batch_groups_key",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    organization_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    transaction_type: Mapped[str] = mapped_column(String(100), nullable=False)
    batch_date: Mapped[date] = mapped_column(Date, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    source_smart_code: Mapped[str] = mapped_column(String(100), nullable=False)

    running_total: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    # Member transaction ids as strings, in arrival order
    member_transaction_ids: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    def __repr__(self) -> str:
        return (
            f"<BatchGroupModel(id={self.id}, type={self.transaction_type}, "
            f"date={self.batch_date}, total={self.running_total})>"
        )
