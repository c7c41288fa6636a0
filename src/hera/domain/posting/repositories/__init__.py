from hera.domain.posting.repositories.audit_repository import AuditRepository
from hera.domain.posting.repositories.batch_group_repository import (
    BatchGroupRepository,
)
from hera.domain.posting.repositories.journal_repository import JournalRepository
from hera.domain.posting.repositories.source_transaction_repository import (
    SourceTransactionRepository,
)

__all__ = [
    "AuditRepository",
    "BatchGroupRepository",
    "JournalRepository",
    "SourceTransactionRepository",
]
