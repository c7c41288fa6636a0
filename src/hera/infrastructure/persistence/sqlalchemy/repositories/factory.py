"""SQLAlchemy repository factory for creating organization-scoped repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hera.infrastructure.persistence.sqlalchemy.repositories.posting import (
    AuditRepositorySQLAlchemy,
    BatchGroupRepositorySQLAlchemy,
    JournalRepositorySQLAlchemy,
    SourceTransactionRepositorySQLAlchemy,
)

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext


class SQLAlchemyRepositoryFactory:
    """SQLAlchemy implementation of the RepositoryFactory Protocol."""

    def __init__(
        self,
        session: AsyncSession,
        organization_context: OrganizationContext,
        session_maker: async_sessionmaker[AsyncSession],
    ):
        self._session = session
        self._organization_context = organization_context
        self._session_maker = session_maker

        # Cached instances (created on demand)
        self._source_repo: SourceTransactionRepositorySQLAlchemy | None = None
        self._journal_repo: JournalRepositorySQLAlchemy | None = None
        self._batch_repo: BatchGroupRepositorySQLAlchemy | None = None
        self._audit_repo: AuditRepositorySQLAlchemy | None = None

    @property
    def organization_context(self) -> OrganizationContext:
        return self._organization_context

    @property
    def session(self) -> AsyncSession:
        return self._session

    def source_transaction_repository(self) -> SourceTransactionRepositorySQLAlchemy:
        if self._source_repo is None:
            self._source_repo = SourceTransactionRepositorySQLAlchemy(
                self._session,
                self._organization_context,
            )
        return self._source_repo

    def journal_repository(self) -> JournalRepositorySQLAlchemy:
        if self._journal_repo is None:
            self._journal_repo = JournalRepositorySQLAlchemy(
                self._session,
                self._organization_context,
            )
        return self._journal_repo

    def batch_group_repository(self) -> BatchGroupRepositorySQLAlchemy:
        if self._batch_repo is None:
            self._batch_repo = BatchGroupRepositorySQLAlchemy(
                self._session,
                self._organization_context,
            )
        return self._batch_repo

    def audit_repository(self) -> AuditRepositorySQLAlchemy:
        if self._audit_repo is None:
            self._audit_repo = AuditRepositorySQLAlchemy(
                self._session_maker,
                self._organization_context,
            )
        return self._audit_repo

    async def flush_audit_log(self) -> int:
        """Write audit records queued during the request (never raises)."""
        if self._audit_repo is None:
            return 0
        return await self._audit_repo.flush()
