"""Value objects of the posting domain."""

from hera.domain.posting.value_objects.account_mapping import (
    POS_EOD_KIND,
    AccountMappingTable,
    GLAccount,
    PosEodAccounts,
    PostingRule,
)
from hera.domain.posting.value_objects.audit_record import AuditRecord
from hera.domain.posting.value_objects.classification import (
    ClassificationMethod,
    ClassificationResult,
)
from hera.domain.posting.value_objects.currency import (
    SUPPORTED_CURRENCIES,
    Currency,
)
from hera.domain.posting.value_objects.finance_event import (
    AUDIT_TRANSACTION_TYPE,
    JOURNAL_TRANSACTION_TYPE,
    RESERVED_TRANSACTION_TYPES,
    BankContext,
    Channel,
    ImportContext,
    IngestMetadata,
    ManualContext,
    McpContext,
    PosContext,
    PosTotals,
    UniversalFinanceEvent,
    normalize_transaction_type,
)
from hera.domain.posting.value_objects.journal_proposal import (
    JournalProposal,
    ProposedLine,
)
from hera.domain.posting.value_objects.money import Money, quantize_amount
from hera.domain.posting.value_objects.posting_policy import PostingPolicy
from hera.domain.posting.value_objects.processing_result import (
    ProcessingMode,
    ProcessingResult,
)
from hera.domain.posting.value_objects.smart_code import (
    AUDIT_ERROR_SMART_CODE,
    AUDIT_LOG_SMART_CODE,
    JournalKind,
    domain_of,
    is_critical,
    is_valid_smart_code,
    journal_smart_code,
    line_smart_code,
    never_relevant_segment,
)

__all__ = [
    "AUDIT_ERROR_SMART_CODE",
    "AUDIT_LOG_SMART_CODE",
    "AUDIT_TRANSACTION_TYPE",
    "JOURNAL_TRANSACTION_TYPE",
    "POS_EOD_KIND",
    "RESERVED_TRANSACTION_TYPES",
    "SUPPORTED_CURRENCIES",
    "AccountMappingTable",
    "AuditRecord",
    "BankContext",
    "Channel",
    "ClassificationMethod",
    "ClassificationResult",
    "Currency",
    "GLAccount",
    "ImportContext",
    "IngestMetadata",
    "JournalKind",
    "JournalProposal",
    "ManualContext",
    "McpContext",
    "Money",
    "PosContext",
    "PosEodAccounts",
    "PosTotals",
    "PostingPolicy",
    "PostingRule",
    "ProcessingMode",
    "ProcessingResult",
    "ProposedLine",
    "UniversalFinanceEvent",
    "domain_of",
    "is_critical",
    "is_valid_smart_code",
    "journal_smart_code",
    "line_smart_code",
    "never_relevant_segment",
    "normalize_transaction_type",
    "quantize_amount",
]
