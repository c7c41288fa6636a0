"""Transaction schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hera.application.dtos.posting import (
    AuditEntryDTO,
    BatchInfoDTO,
    GLLineDTO,
    IngestionOutcome,
    JournalDTO,
    TransactionJournalDTO,
)
from hera.presentation.api.schemas.common import ResponseMetadata


class GLLineResponse(BaseModel):
    """One posted general-ledger line.

    Exactly one of ``debit_amount`` and ``credit_amount`` is set.
    """

    line_number: int
    account_code: str
    account_name: str
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    currency: str
    description: str
    smart_code: str

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_dtos(cls, lines: list[GLLineDTO]) -> list["GLLineResponse"]:
        return [cls.model_validate(line) for line in lines]


class ClassificationResponse(BaseModel):
    is_relevant: bool
    confidence: float
    method: str
    reason: str


class BatchInfoResponse(BaseModel):
    """Batch group the event was added to (batched events only)."""

    batch_group_id: Optional[UUID] = None
    running_total: Optional[Decimal] = None
    member_count: int
    flushed: bool

    @classmethod
    def from_dto(cls, dto: BatchInfoDTO) -> "BatchInfoResponse":
        return cls(
            batch_group_id=dto.batch_group_id,
            running_total=dto.running_total,
            member_count=dto.member_count,
            flushed=dto.flushed,
        )


class PostTransactionData(BaseModel):
    """Outcome of ingesting one finance event."""

    transaction_id: UUID
    journal_entry_id: Optional[UUID] = None
    posting_period: Optional[str] = None
    processing_mode: str
    processing_result: str
    classification: ClassificationResponse
    gl_lines: list[GLLineResponse] = Field(default_factory=list)
    batch: Optional[BatchInfoResponse] = None
    replayed: bool = False

    @classmethod
    def from_outcome(cls, outcome: IngestionOutcome) -> "PostTransactionData":
        return cls(
            transaction_id=outcome.transaction_id,
            journal_entry_id=outcome.journal_entry_id,
            posting_period=outcome.posting_period,
            processing_mode=outcome.processing_mode.value,
            processing_result=outcome.processing_result.value,
            classification=ClassificationResponse.model_validate(
                outcome.classification,
            ),
            gl_lines=GLLineResponse.from_dtos(outcome.gl_lines),
            batch=BatchInfoResponse.from_dto(outcome.batch) if outcome.batch else None,
            replayed=outcome.replayed,
        )


class PostTransactionResponse(BaseModel):
    """Response envelope of ``POST /transactions/post``."""

    success: bool = True
    data: PostTransactionData
    metadata: ResponseMetadata

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "data": {
                    "transaction_id": "7d9f8c1e-3c1a-4c43-9b8e-0f6b1a2d3e4f",
                    "journal_entry_id": "1b2c3d4e-5f60-4718-9a0b-1c2d3e4f5a6b",
                    "posting_period": "2024-06",
                    "processing_mode": "immediate",
                    "processing_result": "posted",
                    "classification": {
                        "is_relevant": True,
                        "confidence": 1.0,
                        "method": "rule",
                        "reason": "Posting rule for 'expense'",
                    },
                    "gl_lines": [
                        {
                            "line_number": 1,
                            "account_code": "6000",
                            "account_name": "Operating Expense",
                            "debit_amount": "15000.00",
                            "credit_amount": None,
                            "currency": "AED",
                            "description": "Operating expense",
                            "smart_code": "HERA.FINANCE.GL.LINE.JE.DEBIT.v1",
                        },
                        {
                            "line_number": 2,
                            "account_code": "1000",
                            "account_name": "Cash - Bank Account",
                            "debit_amount": None,
                            "credit_amount": "15000.00",
                            "currency": "AED",
                            "description": "Operating expense",
                            "smart_code": "HERA.FINANCE.GL.LINE.JE.CREDIT.v1",
                        },
                    ],
                    "batch": None,
                    "replayed": False,
                },
                "metadata": {
                    "processing_time_ms": 12.4,
                    "smart_code": "HERA.FINANCE.EXPENSE.OPEX.V1",
                    "organization_id": "550e8400-e29b-41d4-a716-446655440000",
                    "processed_at": "2024-06-15T10:00:00Z",
                },
            },
        },
    )


class JournalResponse(BaseModel):
    id: UUID
    smart_code: str
    transaction_date: date
    posting_period: str
    description: str
    method: str
    confidence: float
    total_amount: Decimal
    lines: list[GLLineResponse]
    member_transaction_ids: list[UUID] = Field(default_factory=list)

    @classmethod
    def from_dto(cls, dto: JournalDTO) -> "JournalResponse":
        return cls(
            id=dto.id,
            smart_code=dto.smart_code,
            transaction_date=dto.transaction_date,
            posting_period=dto.posting_period,
            description=dto.description,
            method=dto.method,
            confidence=dto.confidence,
            total_amount=dto.total_amount,
            lines=GLLineResponse.from_dtos(dto.lines),
            member_transaction_ids=dto.member_transaction_ids,
        )


class AuditEntryResponse(BaseModel):
    id: UUID
    processing_result: str
    recorded_at: datetime
    method: Optional[str] = None
    confidence: Optional[float] = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_dto(cls, dto: AuditEntryDTO) -> "AuditEntryResponse":
        return cls(
            id=dto.id,
            processing_result=dto.processing_result,
            recorded_at=dto.recorded_at,
            method=dto.method,
            confidence=dto.confidence,
            details=dto.details,
        )


class TransactionJournalData(BaseModel):
    """A source transaction with its journal and audit trail."""

    transaction_id: UUID
    smart_code: str
    status: str
    processing_result: Optional[str] = None
    journal: Optional[JournalResponse] = None
    audit_trail: list[AuditEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_dto(cls, dto: TransactionJournalDTO) -> "TransactionJournalData":
        return cls(
            transaction_id=dto.transaction_id,
            smart_code=dto.smart_code,
            status=dto.status,
            processing_result=dto.processing_result,
            journal=JournalResponse.from_dto(dto.journal) if dto.journal else None,
            audit_trail=[AuditEntryResponse.from_dto(a) for a in dto.audit_trail],
        )


class TransactionJournalResponse(BaseModel):
    success: bool = True
    data: TransactionJournalData
    metadata: ResponseMetadata
