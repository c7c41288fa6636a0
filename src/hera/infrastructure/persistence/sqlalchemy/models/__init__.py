"""SQLAlchemy models; importing this package registers every table."""

from hera.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)
from hera.infrastructure.persistence.sqlalchemy.models.posting import (
    BatchGroupModel,
    UniversalTransactionLineModel,
    UniversalTransactionModel,
)

__all__ = [
    "Base",
    "BatchGroupModel",
    "TimestampMixin",
    "UniversalTransactionLineModel",
    "UniversalTransactionModel",
]
