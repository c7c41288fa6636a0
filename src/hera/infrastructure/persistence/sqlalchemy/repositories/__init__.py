from hera.infrastructure.persistence.sqlalchemy.repositories.factory import (
    SQLAlchemyRepositoryFactory,
)
from hera.infrastructure.persistence.sqlalchemy.repositories.posting import (
    AuditRepositorySQLAlchemy,
    BatchGroupRepositorySQLAlchemy,
    JournalRepositorySQLAlchemy,
    SourceTransactionRepositorySQLAlchemy,
)

__all__ = [
    "AuditRepositorySQLAlchemy",
    "BatchGroupRepositorySQLAlchemy",
    "JournalRepositorySQLAlchemy",
    "SQLAlchemyRepositoryFactory",
    "SourceTransactionRepositorySQLAlchemy",
]
