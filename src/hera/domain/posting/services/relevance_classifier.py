"""Relevance classification of finance events.

Rules are evaluated in order and the first match wins:

1. Cash-movement kinds are always relevant.
2. Zero-value records never carry GL impact.
3. Quotes, drafts and explicitly flagged records are never relevant.
4. Kinds known to the account mapping are relevant.
5. Anything else is escalated to the journal reasoning service.
"""

from __future__ import annotations

import logging
from typing import Optional

from hera.domain.posting.services.escalation_service import EscalationService
from hera.domain.posting.value_objects import (
    AccountMappingTable,
    ClassificationResult,
    UniversalFinanceEvent,
    never_relevant_segment,
)

logger = logging.getLogger(__name__)

ALWAYS_RELEVANT_TYPES: frozenset[str] = frozenset(
    {"payment", "receipt", "bank_fee", "bank_transfer", "bank_deposit"},
)

NEVER_RELEVANT_TYPES: frozenset[str] = frozenset(
    {"quote", "inquiry", "reservation", "estimate"},
)


class RelevanceClassifier:
    """Decides whether a finance event needs a journal entry."""

    def __init__(
        self,
        account_mapping: AccountMappingTable,
        escalation: EscalationService,
    ):
        self._account_mapping = account_mapping
        self._escalation = escalation

    async def classify(self, event: UniversalFinanceEvent) -> ClassificationResult:
        result = self.classify_by_rules(event)
        if result is not None:
            logger.debug(
                "Classified '%s' by rule: relevant=%s (%s)",
                event.transaction_type,
                result.is_relevant,
                result.reason,
            )
            return result
        return await self.escalate(event)

    async def escalate(self, event: UniversalFinanceEvent) -> ClassificationResult:
        return await self._escalation.escalate(event)

    def classify_by_rules(
        self,
        event: UniversalFinanceEvent,
    ) -> Optional[ClassificationResult]:
        """Apply the deterministic rules; None means escalation is needed."""
        kind = event.kind

        if kind in ALWAYS_RELEVANT_TYPES:
            return ClassificationResult.relevant_by_rule(
                f"'{kind}' always affects the general ledger",
            )

        if event.total_amount == 0:
            return ClassificationResult.irrelevant_by_rule("Zero-value transaction")

        segment = never_relevant_segment(event.smart_code)
        if segment is not None:
            return ClassificationResult.irrelevant_by_rule(
                f"Smart code marked {segment}",
            )
        if kind in NEVER_RELEVANT_TYPES:
            return ClassificationResult.irrelevant_by_rule(
                f"'{kind}' carries no financial commitment",
            )
        if event.metadata.no_financial_impact:
            return ClassificationResult.irrelevant_by_rule(
                "Flagged as having no financial impact",
            )

        if self._account_mapping.recognizes(event.organization_id, kind):
            return ClassificationResult.relevant_by_rule(
                f"Posting rule for '{kind}'",
            )

        return None
