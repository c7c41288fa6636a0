from hera.application.queries.posting.get_transaction_journal_query import (
    GetTransactionJournalQuery,
)

__all__ = ["GetTransactionJournalQuery"]
