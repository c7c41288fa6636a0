"""SQLAlchemy model for the universal transaction store.

One table holds three kinds of rows, told apart by ``transaction_type``:
business records written for ingested events, journal headers
(``journal_entry``) and audit records (``gl_audit_log``).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    Date,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hera.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)

if TYPE_CHECKING:
    from hera.infrastructure.persistence.sqlalchemy.models.posting.universal_transaction_line_model import (  # NOQA: E501
        UniversalTransactionLineModel,
    )


class UniversalTransactionModel(Base, TimestampMixin):
    """Database model for universal transactions."""

    __tablename__ = "universal_transactions"

    __table_args__ = (
        # Retries of the same external event map to one business record
        UniqueConstraint(
            "organization_id",
            "idempotency_key",
            name="uq_universal_transactions_idempotency",
        ),
        Index(
            "ix_universal_transactions_org_type",
            "organization_id",
            "transaction_type",
        ),
        Index(
            "ix_universal_transactions_org_date",
            "organization_id",
            "transaction_date",
        ),
        Index("ix_universal_transactions_source", "source_transaction_id"),
    )

    # Primary key (UUID from domain)
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    # Tenant ownership
    organization_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    transaction_type: Mapped[str] = mapped_column(String(100), nullable=False)
    transaction_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    smart_code: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    transaction_currency_code: Mapped[Optional[str]] = mapped_column(
        String(3),
        nullable=True,
    )
    base_currency_code: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    exchange_rate: Mapped[Decimal] = mapped_column(
        Numeric(18, 8),
        nullable=False,
        default=Decimal("1"),
    )

    # YYYY-MM, journals only
    posting_period: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)

    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    idempotency_key: Mapped[Optional[str]] = mapped_column(String(400), nullable=True)

    # Journal -> business record it posts (null for batch summaries);
    # audit record -> business record it describes
    source_transaction_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    # Business record -> journal that carries it (own or batch summary)
    journal_entry_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )

    business_context: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Use transaction_metadata to avoid conflict with SQLAlchemy's metadata
    transaction_metadata: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    # Relationships
    lines: Mapped[list[UniversalTransactionLineModel]] = relationship(
        "UniversalTransactionLineModel",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="UniversalTransactionLineModel.line_number",
        lazy="joined",  # Always load lines with the header
    )

    def __repr__(self) -> str:
        return (
            f"<UniversalTransactionModel(id={self.id}, "
            f"type={self.transaction_type}, smart_code={self.smart_code}, "
            f"status={self.status})>"
        )
