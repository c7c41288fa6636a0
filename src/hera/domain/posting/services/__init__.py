from hera.domain.posting.services.audit_logger import AuditLogger
from hera.domain.posting.services.batch_aggregator import (
    IMMEDIATE_TYPES,
    BatchAggregator,
    FlushedGroup,
    OfferResult,
)
from hera.domain.posting.services.escalation_service import EscalationService
from hera.domain.posting.services.journal_builder import RuleJournalBuilder
from hera.domain.posting.services.journal_proposal_provider import (
    JournalProposalProvider,
)
from hera.domain.posting.services.posting_processor import (
    PostingProcessor,
    PostingResult,
)
from hera.domain.posting.services.relevance_classifier import (
    ALWAYS_RELEVANT_TYPES,
    NEVER_RELEVANT_TYPES,
    RelevanceClassifier,
)

__all__ = [
    "ALWAYS_RELEVANT_TYPES",
    "IMMEDIATE_TYPES",
    "NEVER_RELEVANT_TYPES",
    "AuditLogger",
    "BatchAggregator",
    "EscalationService",
    "FlushedGroup",
    "JournalProposalProvider",
    "OfferResult",
    "PostingProcessor",
    "PostingResult",
    "RelevanceClassifier",
    "RuleJournalBuilder",
]
