"""SQLAlchemy implementation of JournalRepository.

Journal headers are ``journal_entry`` rows of the universal transaction
table; their lines live in ``universal_transaction_lines``.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hera.domain.posting.entities import JournalEntry, JournalLine
from hera.domain.posting.repositories import JournalRepository
from hera.domain.posting.value_objects import (
    JOURNAL_TRANSACTION_TYPE,
    ClassificationMethod,
    GLAccount,
    JournalKind,
    Money,
)
from hera.infrastructure.persistence.sqlalchemy.models import (
    UniversalTransactionLineModel,
    UniversalTransactionModel,
)
from hera.infrastructure.persistence.sqlalchemy.repositories._utils import (
    ensure_uuid,
    store_errors,
)

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext

logger = logging.getLogger(__name__)

POSTED_STATUS = "posted"


class JournalRepositorySQLAlchemy(JournalRepository):
    """SQLAlchemy implementation of the journal repository."""

    def __init__(self, session: AsyncSession, organization_context: OrganizationContext):
        self._session = session
        self._organization_id = organization_context.organization_id

    async def add(self, journal: JournalEntry) -> None:
        # Header and lines land together or not at all
        async with self._session.begin_nested():
            self._session.add(self._create_model_from_domain(journal))

        logger.debug("Journal persisted: %s (%d lines)", journal.id, len(journal.lines))

    async def find_by_id(self, journal_id: UUID) -> Optional[JournalEntry]:
        stmt = select(UniversalTransactionModel).where(
            UniversalTransactionModel.id == journal_id,
            UniversalTransactionModel.organization_id == self._organization_id,
            UniversalTransactionModel.transaction_type == JOURNAL_TRANSACTION_TYPE,
        )
        with store_errors("load journal", journal_id=journal_id):
            result = await self._session.execute(stmt)
            model = result.unique().scalar_one_or_none()
        if not model:
            return None
        return self._map_to_domain(model)

    def _create_model_from_domain(
        self,
        journal: JournalEntry,
    ) -> UniversalTransactionModel:
        currencies = journal.currencies
        currency = currencies[0] if currencies else None
        model = UniversalTransactionModel(
            id=journal.id,
            organization_id=journal.organization_id,
            transaction_type=JOURNAL_TRANSACTION_TYPE,
            transaction_code=f"JE-{journal.id.hex[:12].upper()}",
            smart_code=journal.smart_code,
            transaction_date=journal.transaction_date,
            total_amount=journal.total_amount,
            transaction_currency_code=currency,
            base_currency_code=currency,
            exchange_rate=Decimal("1"),
            posting_period=journal.posting_period,
            status=POSTED_STATUS,
            source_transaction_id=journal.source_transaction_id,
            business_context={
                "source_smart_code": journal.source_smart_code,
                "journal_kind": journal.kind.value,
                "method": journal.method.value,
                "confidence": journal.confidence,
                "member_transaction_ids": [
                    str(i) for i in journal.member_transaction_ids
                ],
            },
            transaction_metadata={
                "description": journal.description,
                "currencies": currencies,
            },
            created_at=journal.created_at,
        )
        model.lines = [
            UniversalTransactionLineModel(
                id=line.id,
                line_number=number,
                account_code=line.account_code,
                account_name=line.account_name,
                debit_amount=line.debit_amount or Decimal("0.00"),
                credit_amount=line.credit_amount or Decimal("0.00"),
                currency=line.currency,
                description=line.description,
                smart_code=line.smart_code,
            )
            for number, line in enumerate(journal.lines, start=1)
        ]
        return model

    def _map_to_domain(self, model: UniversalTransactionModel) -> JournalEntry:
        context = model.business_context or {}
        lines = []
        for line in model.lines:
            is_debit = line.debit_amount > 0
            amount = Money(
                line.debit_amount if is_debit else line.credit_amount,
                line.currency,
            )
            lines.append(
                JournalLine(
                    account=GLAccount(code=line.account_code, name=line.account_name),
                    debit=amount if is_debit else None,
                    credit=None if is_debit else amount,
                    description=line.description,
                    smart_code=line.smart_code,
                    line_id=line.id,
                ),
            )

        return JournalEntry(
            organization_id=model.organization_id,
            transaction_date=model.transaction_date,
            lines=lines,
            smart_code=model.smart_code,
            source_smart_code=context.get("source_smart_code", model.smart_code),
            kind=JournalKind(context.get("journal_kind", JournalKind.AUTO.value)),
            description=(model.transaction_metadata or {}).get("description", ""),
            method=ClassificationMethod(
                context.get("method", ClassificationMethod.RULE.value),
            ),
            confidence=float(context.get("confidence", 1.0)),
            source_transaction_id=model.source_transaction_id,
            member_transaction_ids=[
                ensure_uuid(i) for i in context.get("member_transaction_ids", [])
            ],
            journal_id=model.id,
            created_at=model.created_at,
        )
