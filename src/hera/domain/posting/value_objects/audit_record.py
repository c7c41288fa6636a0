"""Append-only audit records."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from hera.domain.posting.value_objects.processing_result import ProcessingResult
from hera.domain.shared.time import utc_now


@dataclass(frozen=True)
class AuditRecord:
    """One processing attempt, successful or not."""

    organization_id: UUID
    source_smart_code: str
    processing_result: ProcessingResult
    source_transaction_id: UUID | None = None
    journal_entry_id: UUID | None = None
    method: str | None = None
    confidence: float | None = None
    details: dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=utc_now)
    id: UUID = field(default_factory=uuid4)
