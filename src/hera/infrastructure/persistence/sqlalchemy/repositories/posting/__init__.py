from hera.infrastructure.persistence.sqlalchemy.repositories.posting.audit_repository import (  # NOQA: E501
    AuditRepositorySQLAlchemy,
)
from hera.infrastructure.persistence.sqlalchemy.repositories.posting.batch_group_repository import (  # NOQA: E501
    BatchGroupRepositorySQLAlchemy,
)
from hera.infrastructure.persistence.sqlalchemy.repositories.posting.journal_repository import (  # NOQA: E501
    JournalRepositorySQLAlchemy,
)
from hera.infrastructure.persistence.sqlalchemy.repositories.posting.source_transaction_repository import (  # NOQA: E501
    SourceTransactionRepositorySQLAlchemy,
)

__all__ = [
    "AuditRepositorySQLAlchemy",
    "BatchGroupRepositorySQLAlchemy",
    "JournalRepositorySQLAlchemy",
    "SourceTransactionRepositorySQLAlchemy",
]
