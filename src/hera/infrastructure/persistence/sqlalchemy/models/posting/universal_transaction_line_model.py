"""SQLAlchemy model for journal lines."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hera.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)

if TYPE_CHECKING:
    from hera.infrastructure.persistence.sqlalchemy.models.posting.universal_transaction_model import (  # NOQA: E501
        UniversalTransactionModel,
    )


class UniversalTransactionLineModel(Base, TimestampMixin):
    """Database model for GL lines (double-entry bookkeeping).

    Data Integrity Constraints:
    - Exactly one of debit_amount or credit_amount must be positive (XOR)
    - Amounts must be non-negative

    We duplicate the domain validation here to protect against bugs or
    corruption somewhere.
    """

    __tablename__ = "universal_transaction_lines"

    __table_args__ = (
        # (debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) OR "
            "(debit_amount = 0 AND credit_amount > 0)",
            name="ck_transaction_line_xor_debit_credit",
        ),
        CheckConstraint(
            "debit_amount >= 0 AND credit_amount >= 0",
            name="ck_transaction_line_non_negative_amounts",
        ),
    )

    # Primary key (UUID from domain)
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    transaction_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("universal_transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    account_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Amounts (stored as positive values)
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    smart_code: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    transaction: Mapped[UniversalTransactionModel] = relationship(
        "UniversalTransactionModel",
        back_populates="lines",
    )

    def __repr__(self) -> str:
        amount_type = "Debit" if self.debit_amount > 0 else "Credit"
        amount = self.debit_amount if self.debit_amount > 0 else self.credit_amount
        return (
            f"<UniversalTransactionLineModel(id={self.id}, "
            f"{amount_type}={amount}, account={self.account_code})>"
        )
