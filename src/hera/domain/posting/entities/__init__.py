from hera.domain.posting.entities.journal_entry import BALANCE_TOLERANCE, JournalEntry
from hera.domain.posting.entities.journal_line import JournalLine
from hera.domain.posting.entities.source_transaction import (
    SourceStatus,
    SourceTransaction,
)

__all__ = [
    "BALANCE_TOLERANCE",
    "JournalEntry",
    "JournalLine",
    "SourceStatus",
    "SourceTransaction",
]
