"""Application queries - read-only use cases."""

from hera.application.queries.posting import GetTransactionJournalQuery

__all__ = ["GetTransactionJournalQuery"]
