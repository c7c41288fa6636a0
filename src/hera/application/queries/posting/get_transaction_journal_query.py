"""Reconciliation lookup: which journal did a source transaction end up in."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from hera.application.dtos.posting import TransactionJournalDTO
from hera.domain.posting.repositories import (
    AuditRepository,
    JournalRepository,
    SourceTransactionRepository,
)
from hera.domain.shared.exceptions import EntityNotFoundError

if TYPE_CHECKING:
    from hera.application.factories import RepositoryFactory


class GetTransactionJournalQuery:
    """Read-only view of a source transaction and its GL posting.

    For batched transactions the journal is the batch summary; for
    transactions still waiting in a batch group or not posted at all the
    journal is empty and only the audit trail explains why.
    """

    def __init__(
        self,
        source_repository: SourceTransactionRepository,
        journal_repository: JournalRepository,
        audit_repository: AuditRepository,
    ):
        self._source_repo = source_repository
        self._journal_repo = journal_repository
        self._audit_repo = audit_repository

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> GetTransactionJournalQuery:
        return cls(
            source_repository=factory.source_transaction_repository(),
            journal_repository=factory.journal_repository(),
            audit_repository=factory.audit_repository(),
        )

    async def execute(self, transaction_id: UUID) -> TransactionJournalDTO:
        source = await self._source_repo.find_by_id(transaction_id)
        if source is None:
            raise EntityNotFoundError("Transaction", transaction_id)

        journal = None
        if source.journal_entry_id is not None:
            journal = await self._journal_repo.find_by_id(source.journal_entry_id)

        audit_records = await self._audit_repo.find_by_source_transaction(source.id)
        return TransactionJournalDTO.create(source, journal, audit_records)
