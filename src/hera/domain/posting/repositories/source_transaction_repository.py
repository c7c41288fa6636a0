"""Source transaction repository interface.

Implementations are organization-scoped via OrganizationContext, meaning
all queries automatically filter by the current tenant.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from hera.domain.posting.entities import SourceTransaction


class SourceTransactionRepository(ABC):
    """Repository interface for business records behind finance events."""

    @abstractmethod
    async def save(self, transaction: SourceTransaction) -> None:
        """Insert or update a business record."""

    @abstractmethod
    async def find_by_id(self, transaction_id: UUID) -> Optional[SourceTransaction]:
        """Find a business record by ID."""

    @abstractmethod
    async def find_by_idempotency_key(self, key: str) -> Optional[SourceTransaction]:
        """Find the record stored for an earlier delivery of the same event."""

    @abstractmethod
    async def mark_batched(
        self,
        transaction_ids: list[UUID],
        journal_entry_id: UUID,
    ) -> int:
        """Flag members of a flushed batch and point them at its journal.

        Returns the number of records updated.
        """
