"""
Drive the posting pipeline against a real database the way the API does.

Each call runs in its own session: commit on success, rollback on error,
then the deferred audit flush.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hera.application.commands import (
    IngestFinanceEventCommand,
    SweepBatchGroupsCommand,
)
from hera.application.commands.posting import SweepResult
from hera.application.context import OrganizationContext
from hera.application.dtos.posting import IngestionOutcome, TransactionJournalDTO
from hera.application.queries import GetTransactionJournalQuery
from hera.domain.posting.services import JournalProposalProvider
from hera.domain.posting.value_objects import (
    AUDIT_TRANSACTION_TYPE,
    JOURNAL_TRANSACTION_TYPE,
    AccountMappingTable,
    PostingPolicy,
)
from hera.infrastructure.persistence.sqlalchemy.models import (
    BatchGroupModel,
    UniversalTransactionLineModel,
    UniversalTransactionModel,
)
from hera.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from tests.shared.fixtures.factories import TestOrganizationFactory


class PipelineHarness:
    """Runs commands and queries with request-like transaction handling."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        account_mapping: AccountMappingTable,
        policy: PostingPolicy,
        proposal_provider: Optional[JournalProposalProvider] = None,
    ):
        self.session_maker = session_maker
        self.account_mapping = account_mapping
        self.policy = policy
        self.proposal_provider = proposal_provider

    async def ingest(
        self,
        raw_event: Any,
        context: Optional[OrganizationContext] = None,
    ) -> IngestionOutcome:
        context = context or TestOrganizationFactory.default_context()
        async with self.session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(session, context, self.session_maker)
            command = IngestFinanceEventCommand.from_factory(
                factory,
                self.account_mapping,
                self.policy,
                self.proposal_provider,
            )
            try:
                outcome = await command.execute(raw_event, context)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await factory.flush_audit_log()
        return outcome

    async def sweep(
        self,
        context: Optional[OrganizationContext] = None,
        **kwargs: Any,
    ) -> list[SweepResult]:
        context = context or TestOrganizationFactory.default_context()
        async with self.session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(session, context, self.session_maker)
            command = SweepBatchGroupsCommand.from_factory(
                factory,
                self.account_mapping,
                self.policy,
            )
            try:
                results = await command.execute(context.organization_id, **kwargs)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await factory.flush_audit_log()
        return results

    async def transaction_journal(
        self,
        transaction_id: UUID,
        context: Optional[OrganizationContext] = None,
    ) -> TransactionJournalDTO:
        context = context or TestOrganizationFactory.default_context()
        async with self.session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(session, context, self.session_maker)
            return await GetTransactionJournalQuery.from_factory(factory).execute(
                transaction_id,
            )

    async def rows(self, transaction_type: Optional[str] = None) -> list[Any]:
        """Universal transaction rows, optionally of one type."""
        stmt = select(UniversalTransactionModel).order_by(
            UniversalTransactionModel.created_at,
        )
        if transaction_type is not None:
            stmt = stmt.where(
                UniversalTransactionModel.transaction_type == transaction_type,
            )
        async with self.session_maker() as session:
            result = await session.execute(stmt)
            return list(result.unique().scalars().all())

    async def business_rows(self) -> list[Any]:
        reserved = (JOURNAL_TRANSACTION_TYPE, AUDIT_TRANSACTION_TYPE)
        return [r for r in await self.rows() if r.transaction_type not in reserved]

    async def journal_rows(self) -> list[Any]:
        return await self.rows(JOURNAL_TRANSACTION_TYPE)

    async def audit_rows(self) -> list[Any]:
        return await self.rows(AUDIT_TRANSACTION_TYPE)

    async def count(self, model: Any) -> int:
        async with self.session_maker() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    async def line_count(self) -> int:
        return await self.count(UniversalTransactionLineModel)

    async def open_batch_groups(self) -> int:
        return await self.count(BatchGroupModel)
