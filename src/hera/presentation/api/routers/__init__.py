from hera.presentation.api.routers.batches import router as batches_router
from hera.presentation.api.routers.transactions import router as transactions_router

__all__ = [
    "batches_router",
    "transactions_router",
]
