"""Audit repository interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from hera.domain.posting.value_objects import AuditRecord


class AuditRepository(ABC):
    """Append-only store of audit records.

    Records are written independently of the request transaction so that
    failed attempts are still traceable after a rollback.
    """

    @abstractmethod
    async def append(self, record: AuditRecord) -> None:
        """Persist one audit record."""

    @abstractmethod
    async def find_by_source_transaction(
        self,
        source_transaction_id: UUID,
    ) -> list[AuditRecord]:
        """Return records about one business transaction, oldest first."""
