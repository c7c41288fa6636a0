"""DTOs for the result of ingesting one finance event."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from hera.domain.posting.entities import JournalLine
from hera.domain.posting.value_objects import ProcessingMode, ProcessingResult


@dataclass(frozen=True)
class GLLineDTO:
    """One posted general-ledger line."""

    line_number: int
    account_code: str
    account_name: str
    debit_amount: Optional[Decimal]
    credit_amount: Optional[Decimal]
    currency: str
    description: str
    smart_code: str

    @classmethod
    def from_line(cls, line_number: int, line: JournalLine) -> "GLLineDTO":
        return cls(
            line_number=line_number,
            account_code=line.account_code,
            account_name=line.account_name,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            currency=line.currency,
            description=line.description,
            smart_code=line.smart_code,
        )

    @classmethod
    def from_lines(cls, lines: tuple[JournalLine, ...]) -> list["GLLineDTO"]:
        return [cls.from_line(i, line) for i, line in enumerate(lines, start=1)]


@dataclass(frozen=True)
class BatchInfoDTO:
    """State of the batch group an event was added to."""

    batch_group_id: Optional[UUID]
    running_total: Optional[Decimal]
    member_count: int
    flushed: bool


@dataclass(frozen=True)
class IngestionOutcome:
    """What the engine did with one accepted finance event."""

    transaction_id: UUID
    organization_id: UUID
    smart_code: str
    processing_mode: ProcessingMode
    processing_result: ProcessingResult
    classification: dict[str, Any]
    journal_entry_id: Optional[UUID] = None
    posting_period: Optional[str] = None
    gl_lines: list[GLLineDTO] = field(default_factory=list)
    batch: Optional[BatchInfoDTO] = None
    replayed: bool = False
