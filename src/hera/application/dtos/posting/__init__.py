"""Posting DTOs - results of ingestion, sweeps and journal lookups."""

from hera.application.dtos.posting.ingestion_outcome_dto import (
    BatchInfoDTO,
    GLLineDTO,
    IngestionOutcome,
)
from hera.application.dtos.posting.transaction_journal_dto import (
    AuditEntryDTO,
    JournalDTO,
    TransactionJournalDTO,
)

__all__ = [
    "AuditEntryDTO",
    "BatchInfoDTO",
    "GLLineDTO",
    "IngestionOutcome",
    "JournalDTO",
    "TransactionJournalDTO",
]
