"""Escalation of unrecognized events to the journal reasoning service.

The external call is run as its own task and bounded by a timeout. A
provider that is missing, slow or failing never fails the request: the
event is treated as not relevant (confidence 0) and the problem logged.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from hera.domain.posting.entities import BALANCE_TOLERANCE
from hera.domain.posting.services.journal_proposal_provider import (
    JournalProposalProvider,
)
from hera.domain.posting.value_objects import (
    AccountMappingTable,
    ClassificationMethod,
    ClassificationResult,
    JournalProposal,
    ProcessingResult,
    UniversalFinanceEvent,
)

logger = logging.getLogger(__name__)


class EscalationService:
    """Turns journal proposals into AI classification results."""

    def __init__(
        self,
        provider: Optional[JournalProposalProvider],
        account_mapping: AccountMappingTable,
        min_confidence: float = 0.5,
        timeout: float = 5.0,
    ):
        self._provider = provider
        self._account_mapping = account_mapping
        self._min_confidence = min_confidence
        self._timeout = timeout

    async def escalate(self, event: UniversalFinanceEvent) -> ClassificationResult:
        if self._provider is None:
            logger.warning(
                "No journal proposal provider configured; "
                "'%s' (%s) will not be posted",
                event.transaction_type,
                event.smart_code,
            )
            return self._failed("No journal proposal provider configured")

        proposal = await self._request_proposal(self._provider, event)
        if proposal is None:
            return self._failed("Journal proposal service gave no answer")

        if proposal.confidence < self._min_confidence:
            logger.info(
                "AI proposal for '%s' rejected: confidence %.2f below %.2f",
                event.transaction_type,
                proposal.confidence,
                self._min_confidence,
            )
            return ClassificationResult(
                is_relevant=False,
                confidence=proposal.confidence,
                method=ClassificationMethod.AI,
                reason=f"Confidence below {self._min_confidence:.2f} floor",
                outcome=ProcessingResult.REJECTED_LOW_CONFIDENCE,
            )

        if not _is_balanced(proposal):
            logger.warning(
                "AI proposal for '%s' rejected: debits %s != credits %s",
                event.transaction_type,
                proposal.total_debits,
                proposal.total_credits,
            )
            return ClassificationResult(
                is_relevant=False,
                confidence=proposal.confidence,
                method=ClassificationMethod.AI,
                reason="Proposed lines do not balance",
                outcome=ProcessingResult.REJECTED_UNBALANCED_PROPOSAL,
            )

        chart = self._account_mapping.chart(event.organization_id)
        unknown = sorted({ln.account_code for ln in proposal.lines} - set(chart))
        if unknown:
            logger.warning(
                "AI proposal for '%s' rejected: accounts %s are not in the chart",
                event.transaction_type,
                ", ".join(unknown),
            )
            return ClassificationResult(
                is_relevant=False,
                confidence=proposal.confidence,
                method=ClassificationMethod.AI,
                reason=f"Unknown accounts: {', '.join(unknown)}",
                outcome=ProcessingResult.REJECTED_UNKNOWN_ACCOUNT,
            )

        logger.info(
            "AI proposal accepted for '%s' (confidence: %.2f, lines: %d)",
            event.transaction_type,
            proposal.confidence,
            len(proposal.lines),
        )
        return ClassificationResult(
            is_relevant=True,
            confidence=proposal.confidence,
            method=ClassificationMethod.AI,
            reason=proposal.reason or "Accepted journal proposal",
            proposal=proposal,
        )

    async def _request_proposal(
        self,
        provider: JournalProposalProvider,
        event: UniversalFinanceEvent,
    ) -> Optional[JournalProposal]:
        chart = list(self._account_mapping.chart(event.organization_id).values())
        task = asyncio.create_task(
            provider.request_journal_proposal(event, chart),
            name=f"journal-proposal-{event.smart_code}",
        )
        try:
            # wait_for cancels the task when the timeout expires
            return await asyncio.wait_for(task, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Journal proposal for '%s' timed out after %.1fs; "
                "treating event as not relevant",
                event.transaction_type,
                self._timeout,
            )
            return None
        except Exception as e:
            logger.warning(
                "Journal proposal for '%s' failed: %s (type: %s); "
                "treating event as not relevant",
                event.transaction_type,
                str(e) or repr(e),
                type(e).__name__,
            )
            return None

    def _failed(self, reason: str) -> ClassificationResult:
        return ClassificationResult(
            is_relevant=False,
            confidence=0.0,
            method=ClassificationMethod.AI,
            reason=reason,
            outcome=ProcessingResult.ESCALATION_FAILED,
        )


def _is_balanced(proposal: JournalProposal) -> bool:
    has_both_sides = any(line.side == "debit" for line in proposal.lines) and any(
        line.side == "credit" for line in proposal.lines
    )
    difference: Decimal = proposal.total_debits - proposal.total_credits
    return has_both_sides and abs(difference) < BALANCE_TOLERANCE
