"""DTOs for the reconciliation view of one source transaction."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from hera.application.dtos.posting.ingestion_outcome_dto import GLLineDTO
from hera.domain.posting.entities import JournalEntry, SourceTransaction
from hera.domain.posting.value_objects import AuditRecord


@dataclass(frozen=True)
class JournalDTO:
    id: UUID
    smart_code: str
    transaction_date: date
    posting_period: str
    description: str
    method: str
    confidence: float
    total_amount: Decimal
    lines: list[GLLineDTO]
    member_transaction_ids: list[UUID] = field(default_factory=list)

    @classmethod
    def from_journal(cls, journal: JournalEntry) -> "JournalDTO":
        return cls(
            id=journal.id,
            smart_code=journal.smart_code,
            transaction_date=journal.transaction_date,
            posting_period=journal.posting_period,
            description=journal.description,
            method=journal.method.value,
            confidence=journal.confidence,
            total_amount=journal.total_amount,
            lines=GLLineDTO.from_lines(journal.lines),
            member_transaction_ids=journal.member_transaction_ids,
        )


@dataclass(frozen=True)
class AuditEntryDTO:
    id: UUID
    processing_result: str
    recorded_at: datetime
    method: Optional[str]
    confidence: Optional[float]
    details: dict[str, Any]

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditEntryDTO":
        return cls(
            id=record.id,
            processing_result=record.processing_result.value,
            recorded_at=record.recorded_at,
            method=record.method,
            confidence=record.confidence,
            details=dict(record.details),
        )


@dataclass(frozen=True)
class TransactionJournalDTO:
    """Source transaction, the journal it ended up in and its audit trail."""

    transaction_id: UUID
    smart_code: str
    status: str
    processing_result: Optional[str]
    journal: Optional[JournalDTO]
    audit_trail: list[AuditEntryDTO] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        source: SourceTransaction,
        journal: Optional[JournalEntry],
        audit_records: list[AuditRecord],
    ) -> "TransactionJournalDTO":
        return cls(
            transaction_id=source.id,
            smart_code=source.event.smart_code,
            status=source.status.value,
            processing_result=(
                source.processing_result.value if source.processing_result else None
            ),
            journal=JournalDTO.from_journal(journal) if journal else None,
            audit_trail=[AuditEntryDTO.from_record(r) for r in audit_records],
        )
