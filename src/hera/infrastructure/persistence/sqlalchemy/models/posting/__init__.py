from hera.infrastructure.persistence.sqlalchemy.models.posting.batch_group_model import (  # NOQA: E501
    BatchGroupModel,
)
from hera.infrastructure.persistence.sqlalchemy.models.posting.universal_transaction_line_model import (  # NOQA: E501
    UniversalTransactionLineModel,
)
from hera.infrastructure.persistence.sqlalchemy.models.posting.universal_transaction_model import (  # NOQA: E501
    UniversalTransactionModel,
)

__all__ = [
    "BatchGroupModel",
    "UniversalTransactionLineModel",
    "UniversalTransactionModel",
]
