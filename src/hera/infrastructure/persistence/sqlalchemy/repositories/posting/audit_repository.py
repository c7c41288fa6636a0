"""SQLAlchemy implementation of AuditRepository.

Audit records are ``gl_audit_log`` rows of the universal transaction
table. They are queued during the request and written by ``flush`` in a
session of their own once the request transaction has ended, so a rolled
back posting still leaves its audit trail and audit writes never contend
with the request for row or table locks.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hera.domain.posting.repositories import AuditRepository
from hera.domain.posting.value_objects import (
    AUDIT_ERROR_SMART_CODE,
    AUDIT_LOG_SMART_CODE,
    AUDIT_TRANSACTION_TYPE,
    AuditRecord,
    ProcessingResult,
)
from hera.infrastructure.persistence.sqlalchemy.models import (
    UniversalTransactionModel,
)
from hera.infrastructure.persistence.sqlalchemy.repositories._utils import (
    ensure_uuid,
    to_json_safe,
)

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext

logger = logging.getLogger(__name__)

# Secondary channel for audit records that could not be stored
fallback_logger = logging.getLogger("hera.audit")


class AuditRepositorySQLAlchemy(AuditRepository):
    """Audit store writing through its own sessions."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        organization_context: OrganizationContext,
    ):
        self._session_maker = session_maker
        self._organization_id = organization_context.organization_id
        self._pending: list[AuditRecord] = []

    @property
    def pending(self) -> list[AuditRecord]:
        return list(self._pending)

    async def append(self, record: AuditRecord) -> None:
        self._pending.append(record)

    async def flush(self) -> int:
        """Write queued records in one independent transaction.

        Never raises: records that cannot be stored go to the ``hera.audit``
        logger. Returns the number of records written.
        """
        if not self._pending:
            return 0

        records, self._pending = self._pending, []
        try:
            async with self._session_maker() as session:
                session.add_all([_create_model(r) for r in records])
                await session.commit()
        except Exception as e:
            for record in records:
                fallback_logger.warning(
                    "Audit record %s could not be stored (%s: %s); "
                    "org=%s smart_code=%s result=%s source=%s journal=%s",
                    record.id,
                    type(e).__name__,
                    str(e) or repr(e),
                    record.organization_id,
                    record.source_smart_code,
                    record.processing_result.value,
                    record.source_transaction_id,
                    record.journal_entry_id,
                )
            return 0

        logger.debug("Stored %d audit record(s)", len(records))
        return len(records)

    async def find_by_source_transaction(
        self,
        source_transaction_id: UUID,
    ) -> list[AuditRecord]:
        stmt = (
            select(UniversalTransactionModel)
            .where(
                UniversalTransactionModel.organization_id == self._organization_id,
                UniversalTransactionModel.transaction_type == AUDIT_TRANSACTION_TYPE,
                UniversalTransactionModel.source_transaction_id
                == source_transaction_id,
            )
            .order_by(UniversalTransactionModel.created_at)
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            models = result.unique().scalars().all()
        return [_map_to_domain(m) for m in models]


def _create_model(record: AuditRecord) -> UniversalTransactionModel:
    smart_code = (
        AUDIT_ERROR_SMART_CODE
        if record.processing_result.is_failure
        else AUDIT_LOG_SMART_CODE
    )
    return UniversalTransactionModel(
        id=record.id,
        organization_id=record.organization_id,
        transaction_type=AUDIT_TRANSACTION_TYPE,
        smart_code=smart_code,
        transaction_date=record.recorded_at.date(),
        total_amount=Decimal("0.00"),
        status=record.processing_result.value,
        source_transaction_id=record.source_transaction_id,
        business_context={
            "source_smart_code": record.source_smart_code,
            "processing_result": record.processing_result.value,
            "journal_entry_id": (
                str(record.journal_entry_id) if record.journal_entry_id else None
            ),
            "method": record.method,
            "confidence": record.confidence,
            "recorded_at": record.recorded_at.isoformat(),
        },
        transaction_metadata=to_json_safe(record.details),
        created_at=record.recorded_at,
        updated_at=record.recorded_at,
    )


def _map_to_domain(model: UniversalTransactionModel) -> AuditRecord:
    context: dict[str, Any] = model.business_context or {}
    recorded_at = context.get("recorded_at")
    return AuditRecord(
        organization_id=model.organization_id,
        source_smart_code=context.get("source_smart_code", model.smart_code),
        processing_result=ProcessingResult(
            context.get("processing_result", model.status),
        ),
        source_transaction_id=model.source_transaction_id,
        journal_entry_id=ensure_uuid(context.get("journal_entry_id")),
        method=context.get("method"),
        confidence=context.get("confidence"),
        details=model.transaction_metadata or {},
        recorded_at=(
            datetime.fromisoformat(recorded_at) if recorded_at else model.created_at
        ),
        id=model.id,
    )
