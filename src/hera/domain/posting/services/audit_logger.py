"""Best-effort audit trail of processing attempts."""

from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

from hera.domain.posting.repositories import AuditRepository
from hera.domain.posting.value_objects import AuditRecord, ProcessingResult

logger = logging.getLogger(__name__)

# Secondary channel for audit records that could not be stored
fallback_logger = logging.getLogger("hera.audit")


class AuditLogger:
    """Appends one AuditRecord per processing attempt.

    Failures to store a record are written to the ``hera.audit`` logger and
    never propagate to the caller.
    """

    def __init__(self, audit_repository: Optional[AuditRepository]):
        self._audit_repo = audit_repository

    async def record(  # NOQA: PLR0913
        self,
        organization_id: UUID,
        source_smart_code: str,
        result: ProcessingResult,
        source_transaction_id: Optional[UUID] = None,
        journal_entry_id: Optional[UUID] = None,
        method: Optional[str] = None,
        confidence: Optional[float] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditRecord]:
        record = AuditRecord(
            organization_id=organization_id,
            source_smart_code=source_smart_code,
            processing_result=result,
            source_transaction_id=source_transaction_id,
            journal_entry_id=journal_entry_id,
            method=method,
            confidence=confidence,
            details=details or {},
        )

        if self._audit_repo is None:
            fallback_logger.info(
                "Audit (no store): %s %s %s",
                organization_id,
                source_smart_code,
                result.value,
            )
            return record

        try:
            await self._audit_repo.append(record)
        except Exception as e:
            fallback_logger.warning(
                "Audit record %s could not be stored (%s: %s); "
                "org=%s smart_code=%s result=%s source=%s journal=%s",
                record.id,
                type(e).__name__,
                str(e) or repr(e),
                organization_id,
                source_smart_code,
                result.value,
                source_transaction_id,
                journal_entry_id,
            )
            return None

        logger.debug("Audit record %s: %s", record.id, result.value)
        return record
