"""SQLAlchemy implementation of SourceTransactionRepository.

This implementation is organization-scoped via OrganizationContext, meaning
all queries automatically filter by the current tenant.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hera.domain.posting.entities import SourceStatus, SourceTransaction
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.repositories import SourceTransactionRepository
from hera.domain.posting.value_objects import (
    RESERVED_TRANSACTION_TYPES,
    ProcessingMode,
    ProcessingResult,
    UniversalFinanceEvent,
)
from hera.domain.shared.exceptions import ErrorCode
from hera.infrastructure.persistence.sqlalchemy.models import (
    UniversalTransactionModel,
)
from hera.infrastructure.persistence.sqlalchemy.repositories._utils import (
    ensure_uuid,
    store_errors,
    to_json_safe,
)

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext

logger = logging.getLogger(__name__)


class SourceTransactionRepositorySQLAlchemy(SourceTransactionRepository):
    """Business records stored in the universal transaction table."""

    def __init__(self, session: AsyncSession, organization_context: OrganizationContext):
        self._session = session
        self._organization_id = organization_context.organization_id

    async def save(self, transaction: SourceTransaction) -> None:
        with store_errors("save business record", transaction_id=transaction.id):
            await self._save(transaction)

    async def _save(self, transaction: SourceTransaction) -> None:
        model = await self._find_model_by_id(transaction.id)

        if model:
            logger.debug("Updating business record: %s", transaction.id)
            self._update_model_from_domain(model, transaction)
        else:
            logger.debug("Creating business record: %s", transaction.id)
            model = UniversalTransactionModel(id=transaction.id)
            self._update_model_from_domain(model, transaction)
            self._session.add(model)

        try:
            await self._session.flush()
        except IntegrityError as e:
            # Concurrent delivery of the same event; a retry replays it
            logger.warning(
                "Conflicting write for business record %s: %s",
                transaction.id,
                type(e).__name__,
            )
            msg = "Conflicting write for this event; retry to replay the outcome"
            raise PostingError(
                msg,
                ErrorCode.PERSISTENCE_FAILED,
                {"idempotency_key": transaction.idempotency_key},
            ) from e

    async def find_by_id(self, transaction_id: UUID) -> Optional[SourceTransaction]:
        with store_errors("load business record", transaction_id=transaction_id):
            model = await self._find_model_by_id(transaction_id)
        if not model:
            return None
        return self._map_to_domain(model)

    async def find_by_idempotency_key(self, key: str) -> Optional[SourceTransaction]:
        stmt = self._base_query().where(UniversalTransactionModel.idempotency_key == key)
        with store_errors("idempotency lookup"):
            result = await self._session.execute(stmt)
            model = result.unique().scalar_one_or_none()
        if not model:
            return None
        return self._map_to_domain(model)

    async def mark_batched(
        self,
        transaction_ids: list[UUID],
        journal_entry_id: UUID,
    ) -> int:
        if not transaction_ids:
            return 0

        with store_errors("mark batch members", journal_entry_id=journal_entry_id):
            count = await self._mark_batched(transaction_ids, journal_entry_id)
        logger.debug(
            "Marked %d business record(s) batched into journal %s",
            count,
            journal_entry_id,
        )
        return count

    async def _mark_batched(
        self,
        transaction_ids: list[UUID],
        journal_entry_id: UUID,
    ) -> int:
        stmt = self._base_query().where(UniversalTransactionModel.id.in_(transaction_ids))
        result = await self._session.execute(stmt)
        models = result.unique().scalars().all()

        for model in models:
            processing = dict(model.transaction_metadata.get("processing") or {})
            processing.update(
                {
                    "result": ProcessingResult.BATCH_POSTED.value,
                    "mode": ProcessingMode.BATCHED.value,
                    "batched": True,
                },
            )
            model.status = SourceStatus.BATCHED.value
            model.journal_entry_id = journal_entry_id
            # Reassign so the JSON column is flagged as modified
            model.transaction_metadata = {
                **model.transaction_metadata,
                "processing": processing,
            }

        await self._session.flush()
        return len(models)

    def _base_query(self):
        return select(UniversalTransactionModel).where(
            UniversalTransactionModel.organization_id == self._organization_id,
            UniversalTransactionModel.transaction_type.notin_(
                RESERVED_TRANSACTION_TYPES,
            ),
        )

    async def _find_model_by_id(
        self,
        transaction_id: UUID,
    ) -> Optional[UniversalTransactionModel]:
        stmt = self._base_query().where(UniversalTransactionModel.id == transaction_id)
        result = await self._session.execute(stmt)
        return result.unique().scalar_one_or_none()

    def _update_model_from_domain(
        self,
        model: UniversalTransactionModel,
        transaction: SourceTransaction,
    ) -> None:
        event = transaction.event
        model.organization_id = event.organization_id
        model.transaction_type = event.transaction_type
        model.transaction_code = event.transaction_code
        model.smart_code = event.smart_code
        model.transaction_date = event.transaction_date
        model.total_amount = event.total_amount
        model.transaction_currency_code = event.transaction_currency_code
        model.base_currency_code = event.base_currency_code
        model.exchange_rate = event.exchange_rate
        model.status = transaction.status.value
        model.idempotency_key = event.idempotency_key
        model.journal_entry_id = transaction.journal_entry_id
        model.business_context = event.business_context.model_dump(mode="json")
        model.transaction_metadata = {
            "ingest": event.metadata.model_dump(mode="json"),
            "processing": to_json_safe(_processing_state(transaction)),
        }

    def _map_to_domain(self, model: UniversalTransactionModel) -> SourceTransaction:
        metadata: dict[str, Any] = model.transaction_metadata or {}
        processing: dict[str, Any] = metadata.get("processing") or {}

        event = UniversalFinanceEvent.model_validate(
            {
                "organization_id": model.organization_id,
                "transaction_type": model.transaction_type,
                "smart_code": model.smart_code,
                "transaction_code": model.transaction_code,
                "transaction_date": model.transaction_date,
                "total_amount": model.total_amount,
                "transaction_currency_code": model.transaction_currency_code,
                "base_currency_code": model.base_currency_code,
                "exchange_rate": model.exchange_rate,
                "business_context": model.business_context,
                "metadata": metadata.get("ingest") or {},
            },
        )

        result = processing.get("result")
        mode = processing.get("mode")
        return SourceTransaction(
            event=event,
            transaction_id=model.id,
            status=SourceStatus(model.status),
            processing_result=ProcessingResult(result) if result else None,
            processing_mode=ProcessingMode(mode) if mode else None,
            journal_entry_id=model.journal_entry_id,
            batch_group_id=ensure_uuid(processing.get("batch_group_id")),
            classification=processing.get("classification") or {},
        )


def _processing_state(transaction: SourceTransaction) -> dict[str, Any]:
    return {
        "result": (
            transaction.processing_result.value
            if transaction.processing_result
            else None
        ),
        "mode": (
            transaction.processing_mode.value if transaction.processing_mode else None
        ),
        "batch_group_id": transaction.batch_group_id,
        "batched": transaction.status is SourceStatus.BATCHED,
        "classification": transaction.classification,
    }
