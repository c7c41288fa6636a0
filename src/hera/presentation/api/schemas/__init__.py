"""Pydantic request/response schemas of the HERA API."""

from hera.presentation.api.schemas.batches import (
    SweepData,
    SweepRequest,
    SweepResponse,
    SweptGroupResponse,
)
from hera.presentation.api.schemas.common import (
    ErrorBody,
    ErrorResponse,
    FieldErrorResponse,
    HealthResponse,
    PostingErrorResponse,
    ResponseMetadata,
)
from hera.presentation.api.schemas.transactions import (
    AuditEntryResponse,
    BatchInfoResponse,
    ClassificationResponse,
    GLLineResponse,
    JournalResponse,
    PostTransactionData,
    PostTransactionResponse,
    TransactionJournalData,
    TransactionJournalResponse,
)

__all__ = [
    "AuditEntryResponse",
    "BatchInfoResponse",
    "ClassificationResponse",
    "ErrorBody",
    "ErrorResponse",
    "FieldErrorResponse",
    "GLLineResponse",
    "HealthResponse",
    "JournalResponse",
    "PostTransactionData",
    "PostTransactionResponse",
    "PostingErrorResponse",
    "ResponseMetadata",
    "SweepData",
    "SweepRequest",
    "SweepResponse",
    "SweptGroupResponse",
    "TransactionJournalData",
    "TransactionJournalResponse",
]
