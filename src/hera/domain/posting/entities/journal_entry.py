"""Journal entry entity: a balanced set of lines for one posting."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID, uuid4

from hera.domain.posting.entities.journal_line import JournalLine
from hera.domain.posting.exceptions import UnbalancedJournalError
from hera.domain.posting.value_objects import ClassificationMethod, JournalKind
from hera.domain.shared.time import posting_period_for, utc_now

# Largest tolerated difference between debits and credits per currency
BALANCE_TOLERANCE = Decimal("0.01")


class JournalEntry:
    """Header plus ordered lines of a GL journal.

    Produced by the rule builder, from an accepted AI proposal, or as the
    summary of a batch group. The balance invariant is checked by
    ``validate_balance`` before anything is persisted.
    """

    def __init__(  # NOQA: PLR0913
        self,
        organization_id: UUID,
        transaction_date: date,
        lines: Iterable[JournalLine],
        smart_code: str,
        source_smart_code: str,
        kind: JournalKind,
        description: str,
        method: ClassificationMethod = ClassificationMethod.RULE,
        confidence: float = 1.0,
        source_transaction_id: Optional[UUID] = None,
        member_transaction_ids: Optional[list[UUID]] = None,
        journal_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
    ):
        self._id = journal_id or uuid4()
        self._organization_id = organization_id
        self._transaction_date = transaction_date
        self._lines = tuple(lines)
        self._smart_code = smart_code
        self._source_smart_code = source_smart_code
        self._kind = kind
        self._description = description
        self._method = method
        self._confidence = confidence
        self._source_transaction_id = source_transaction_id
        self._member_transaction_ids = list(member_transaction_ids or [])
        self._created_at = created_at or utc_now()

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def organization_id(self) -> UUID:
        return self._organization_id

    @property
    def transaction_date(self) -> date:
        return self._transaction_date

    @property
    def posting_period(self) -> str:
        return posting_period_for(self._transaction_date)

    @property
    def lines(self) -> tuple[JournalLine, ...]:
        return self._lines

    @property
    def smart_code(self) -> str:
        return self._smart_code

    @property
    def source_smart_code(self) -> str:
        return self._source_smart_code

    @property
    def kind(self) -> JournalKind:
        return self._kind

    @property
    def description(self) -> str:
        return self._description

    @property
    def method(self) -> ClassificationMethod:
        return self._method

    @property
    def confidence(self) -> float:
        return self._confidence

    @property
    def source_transaction_id(self) -> Optional[UUID]:
        return self._source_transaction_id

    @property
    def member_transaction_ids(self) -> list[UUID]:
        return list(self._member_transaction_ids)

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def total_amount(self) -> Decimal:
        """Sum of the debit side (equals the credit side when balanced)."""
        return sum(
            (line.amount.amount for line in self._lines if line.is_debit()),
            start=Decimal("0"),
        )

    @property
    def currencies(self) -> list[str]:
        return sorted({line.currency for line in self._lines})

    def imbalances(self) -> dict[str, Decimal]:
        """Return debits minus credits for every currency that is off."""
        net: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for line in self._lines:
            if line.is_debit():
                net[line.currency] += line.amount.amount
            else:
                net[line.currency] -= line.amount.amount
        return {
            cur: diff for cur, diff in net.items() if abs(diff) >= BALANCE_TOLERANCE
        }

    def is_balanced(self) -> bool:
        return bool(self._lines) and not self.imbalances()

    def validate_balance(self) -> None:
        if not self._lines:
            raise UnbalancedJournalError({}, [])

        imbalances = self.imbalances()
        if imbalances:
            raise UnbalancedJournalError(
                imbalances,
                [line.to_dict() for line in self._lines],
            )

    def audit_details(self) -> dict[str, Any]:
        return {
            "journal_entry_id": str(self._id),
            "posting_period": self.posting_period,
            "method": self._method.value,
            "confidence": self._confidence,
            "line_count": len(self._lines),
            "total_amount": str(self.total_amount),
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, JournalEntry):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"JournalEntry(id={self._id}, smart_code={self._smart_code!r}, "
            f"lines={len(self._lines)}, period={self.posting_period})"
        )
