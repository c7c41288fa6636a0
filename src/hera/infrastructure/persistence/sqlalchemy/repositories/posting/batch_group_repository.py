"""SQLAlchemy implementation of BatchGroupRepository.

``add_member`` is an atomic find-or-create per key: an
``INSERT ... ON CONFLICT DO NOTHING`` makes sure the row exists, then
``SELECT ... FOR UPDATE`` locks it for the rest of the request
transaction. Concurrent offers for the same key therefore queue on the
row lock and each one sees the total left by the previous one.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from hera.domain.posting.aggregates import BatchGroup
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.repositories import BatchGroupRepository
from hera.domain.shared.exceptions import ErrorCode
from hera.domain.shared.time import utc_now
from hera.infrastructure.persistence.sqlalchemy.models import BatchGroupModel
from hera.infrastructure.persistence.sqlalchemy.repositories._utils import (
    ensure_uuid,
    store_errors,
)

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext

logger = logging.getLogger(__name__)

# A group flushed by a concurrent request between our insert and select
# disappears; the next attempt creates a fresh one
MAX_LOCK_ATTEMPTS = 3

_KEY_COLUMNS = ["organization_id", "transaction_type", "batch_date"]


class BatchGroupRepositorySQLAlchemy(BatchGroupRepository):
    """SQLAlchemy implementation of the batch group repository."""

    def __init__(self, session: AsyncSession, organization_context: OrganizationContext):
        self._session = session
        self._organization_id = organization_context.organization_id

    async def add_member(  # NOQA: PLR0913
        self,
        transaction_type: str,
        batch_date: date,
        currency: str,
        source_smart_code: str,
        transaction_id: UUID,
        amount: Decimal,
    ) -> BatchGroup:
        with store_errors(
            "batch group update",
            transaction_type=transaction_type,
            batch_date=batch_date,
        ):
            return await self._add_member(
                transaction_type,
                batch_date,
                currency,
                source_smart_code,
                transaction_id,
                amount,
            )

    async def _add_member(  # NOQA: PLR0913
        self,
        transaction_type: str,
        batch_date: date,
        currency: str,
        source_smart_code: str,
        transaction_id: UUID,
        amount: Decimal,
    ) -> BatchGroup:
        for _ in range(MAX_LOCK_ATTEMPTS):
            await self._ensure_group(
                transaction_type,
                batch_date,
                currency,
                source_smart_code,
            )
            model = await self._lock_group(transaction_type, batch_date)
            if model is not None:
                break
        else:
            msg = "Batch group could not be locked"
            raise PostingError(
                msg,
                ErrorCode.PERSISTENCE_FAILED,
                {"transaction_type": transaction_type, "batch_date": str(batch_date)},
            )

        group = self._map_to_domain(model)
        group.add_member(transaction_id, amount, currency)

        model.running_total = group.running_total
        model.member_transaction_ids = [str(i) for i in group.member_transaction_ids]
        await self._session.flush()
        return group

    async def find_open(self, before: date | None = None) -> list[BatchGroup]:
        stmt = (
            select(BatchGroupModel)
            .where(BatchGroupModel.organization_id == self._organization_id)
            .order_by(BatchGroupModel.batch_date, BatchGroupModel.created_at)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if before is not None:
            stmt = stmt.where(BatchGroupModel.batch_date < before)

        with store_errors("batch group lookup"):
            result = await self._session.execute(stmt)
        return [self._map_to_domain(m) for m in result.scalars().all()]

    async def delete(self, group: BatchGroup) -> None:
        with store_errors("batch group delete", batch_group_id=group.id):
            await self._session.execute(
                delete(BatchGroupModel).where(
                    BatchGroupModel.id == group.id,
                    BatchGroupModel.organization_id == self._organization_id,
                ),
            )
            await self._session.flush()
        logger.debug("Batch group deleted: %s", group.id)

    async def _ensure_group(
        self,
        transaction_type: str,
        batch_date: date,
        currency: str,
        source_smart_code: str,
    ) -> None:
        now = utc_now()
        stmt = (
            self._insert()
            .values(
                id=uuid4(),
                organization_id=self._organization_id,
                transaction_type=transaction_type,
                batch_date=batch_date,
                currency=currency,
                source_smart_code=source_smart_code,
                running_total=Decimal("0.00"),
                member_transaction_ids=[],
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=_KEY_COLUMNS)
        )
        await self._session.execute(stmt)

    async def _lock_group(
        self,
        transaction_type: str,
        batch_date: date,
    ) -> Optional[BatchGroupModel]:
        stmt = (
            select(BatchGroupModel)
            .where(
                BatchGroupModel.organization_id == self._organization_id,
                BatchGroupModel.transaction_type == transaction_type,
                BatchGroupModel.batch_date == batch_date,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _insert(self):
        if self._session.bind.dialect.name == "postgresql":
            return postgresql.insert(BatchGroupModel)
        return sqlite.insert(BatchGroupModel)

    def _map_to_domain(self, model: BatchGroupModel) -> BatchGroup:
        return BatchGroup(
            organization_id=model.organization_id,
            transaction_type=model.transaction_type,
            batch_date=model.batch_date,
            currency=model.currency,
            source_smart_code=model.source_smart_code,
            group_id=model.id,
            member_transaction_ids=[
                ensure_uuid(i) for i in model.member_transaction_ids or []
            ],
            running_total=model.running_total,
        )
