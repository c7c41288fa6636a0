"""Business record written for every accepted finance event."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from hera.domain.posting.value_objects import (
    ProcessingMode,
    ProcessingResult,
    UniversalFinanceEvent,
)


class SourceStatus(str, Enum):
    """GL lifecycle of a business record."""

    RECORDED = "recorded"
    POSTED = "posted"
    BATCH_PENDING = "batch_pending"
    BATCHED = "batched"
    NOT_POSTED = "not_posted"


class SourceTransaction:
    """The business transaction behind a finance event.

    It exists independently of GL posting: events that produce no journal
    are still recorded, with the reason kept in ``processing_result``.
    """

    def __init__(  # NOQA: PLR0913
        self,
        event: UniversalFinanceEvent,
        transaction_id: Optional[UUID] = None,
        status: SourceStatus = SourceStatus.RECORDED,
        processing_result: Optional[ProcessingResult] = None,
        processing_mode: Optional[ProcessingMode] = None,
        journal_entry_id: Optional[UUID] = None,
        batch_group_id: Optional[UUID] = None,
        classification: Optional[dict[str, Any]] = None,
    ):
        self._id = transaction_id or uuid4()
        self._event = event
        self._status = status
        self._processing_result = processing_result
        self._processing_mode = processing_mode
        self._journal_entry_id = journal_entry_id
        self._batch_group_id = batch_group_id
        self._classification = dict(classification or {})

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def event(self) -> UniversalFinanceEvent:
        return self._event

    @property
    def organization_id(self) -> UUID:
        return self._event.organization_id

    @property
    def idempotency_key(self) -> Optional[str]:
        return self._event.idempotency_key

    @property
    def status(self) -> SourceStatus:
        return self._status

    @property
    def processing_result(self) -> Optional[ProcessingResult]:
        return self._processing_result

    @property
    def processing_mode(self) -> Optional[ProcessingMode]:
        return self._processing_mode

    @property
    def journal_entry_id(self) -> Optional[UUID]:
        return self._journal_entry_id

    @property
    def batch_group_id(self) -> Optional[UUID]:
        return self._batch_group_id

    @property
    def classification(self) -> dict[str, Any]:
        return dict(self._classification)

    def classify(self, classification: dict[str, Any]) -> None:
        self._classification = dict(classification)

    def mark_posted(self, journal_entry_id: UUID) -> None:
        self._status = SourceStatus.POSTED
        self._processing_mode = ProcessingMode.IMMEDIATE
        self._processing_result = ProcessingResult.POSTED
        self._journal_entry_id = journal_entry_id

    def mark_batch_pending(self, batch_group_id: UUID) -> None:
        self._status = SourceStatus.BATCH_PENDING
        self._processing_mode = ProcessingMode.BATCHED
        self._processing_result = ProcessingResult.BATCHED
        self._batch_group_id = batch_group_id

    def mark_batched(self, journal_entry_id: UUID) -> None:
        self._status = SourceStatus.BATCHED
        self._processing_mode = ProcessingMode.BATCHED
        self._processing_result = ProcessingResult.BATCH_POSTED
        self._journal_entry_id = journal_entry_id

    def mark_not_posted(self, result: ProcessingResult) -> None:
        self._status = SourceStatus.NOT_POSTED
        self._processing_mode = ProcessingMode.SKIPPED
        self._processing_result = result

    def __repr__(self) -> str:
        return (
            f"SourceTransaction(id={self._id}, type={self._event.kind!r}, "
            f"status={self._status.value})"
        )
