"""Repository factory protocol for application layer."""

from __future__ import annotations

from typing import Any, Protocol

from hera.application.context import OrganizationContext
from hera.domain.posting.repositories import (
    AuditRepository,
    BatchGroupRepository,
    JournalRepository,
    SourceTransactionRepository,
)


class RepositoryFactory(Protocol):
    """Protocol for creating organization-scoped repositories."""

    @property
    def organization_context(self) -> OrganizationContext:
        """Get the tenant the repositories are scoped to."""
        ...

    @property
    def session(self) -> Any:
        """Get the database session for transaction management.

        The type is intentionally `Any` to avoid coupling the
        application layer to specific database implementations.
        Use this for commit/rollback at the presentation layer.
        """
        ...

    def source_transaction_repository(self) -> SourceTransactionRepository:
        """Get source transaction repository."""
        ...

    def journal_repository(self) -> JournalRepository:
        """Get journal repository."""
        ...

    def batch_group_repository(self) -> BatchGroupRepository:
        """Get batch group repository."""
        ...

    def audit_repository(self) -> AuditRepository:
        """Get audit repository (writes outside the request transaction)."""
        ...

    async def flush_audit_log(self) -> int:
        """Write queued audit records outside the request transaction.

        Call after commit or rollback; never raises.
        """
        ...
