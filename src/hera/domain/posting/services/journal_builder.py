"""Rule-based journal construction.

Maps a transaction kind to a debit/credit pair using the injected
AccountMappingTable. POS end-of-day summaries are expanded into one line
per non-zero total. Kinds without a mapping are never guessed: the builder
returns None and the caller escalates.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from hera.domain.posting.aggregates import BatchGroup
from hera.domain.posting.entities import JournalEntry, JournalLine
from hera.domain.posting.value_objects import (
    POS_EOD_KIND,
    AccountMappingTable,
    ClassificationMethod,
    ClassificationResult,
    GLAccount,
    JournalKind,
    Money,
    PostingRule,
    PosTotals,
    UniversalFinanceEvent,
    domain_of,
    journal_smart_code,
    line_smart_code,
)

logger = logging.getLogger(__name__)


class RuleJournalBuilder:
    """Builds balanced journals from posting rules."""

    def __init__(self, account_mapping: AccountMappingTable):
        self._account_mapping = account_mapping

    @property
    def account_mapping(self) -> AccountMappingTable:
        return self._account_mapping

    def rule_for(self, organization_id: UUID, kind: str) -> Optional[PostingRule]:
        return self._account_mapping.rule_for(organization_id, kind)

    def build(
        self,
        event: UniversalFinanceEvent,
        source_transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        """Return the journal for an event, or None when not buildable."""
        if event.total_amount == 0:
            return None

        kind = event.kind
        if kind == POS_EOD_KIND:
            return self._build_pos_eod(event, source_transaction_id)

        rule = self.rule_for(event.organization_id, kind)
        if rule is None:
            logger.debug("No posting rule for '%s'", kind)
            return None

        lines = _pair(
            rule,
            Money(event.total_amount, event.transaction_currency_code),
            event.domain,
            rule.description,
        )
        return JournalEntry(
            organization_id=event.organization_id,
            transaction_date=event.transaction_date,
            lines=lines,
            smart_code=journal_smart_code(event.domain, JournalKind.AUTO),
            source_smart_code=event.smart_code,
            kind=JournalKind.AUTO,
            description=f"{rule.description} ({event.transaction_code or kind})",
            source_transaction_id=source_transaction_id,
        )

    def build_batch_summary(self, group: BatchGroup) -> Optional[JournalEntry]:
        """Summarize a batch group into one debit/credit pair."""
        rule = self.rule_for(group.organization_id, group.transaction_type)
        if rule is None:
            return None

        domain = domain_of(group.source_smart_code)
        description = (
            f"Batch Journal - {group.member_count} {group.transaction_type} "
            f"transactions on {group.batch_date.isoformat()}"
        )
        lines = _pair(
            rule,
            Money(group.running_total, group.currency),
            domain,
            f"{rule.description} ({group.member_count} transactions batched)",
        )
        return JournalEntry(
            organization_id=group.organization_id,
            transaction_date=group.batch_date,
            lines=lines,
            smart_code=journal_smart_code(domain, JournalKind.BATCH),
            source_smart_code=group.source_smart_code,
            kind=JournalKind.BATCH,
            description=description,
            member_transaction_ids=group.member_transaction_ids,
        )

    def build_from_proposal(
        self,
        event: UniversalFinanceEvent,
        source_transaction_id: UUID,
        classification: ClassificationResult,
    ) -> Optional[JournalEntry]:
        """Turn an accepted AI proposal into a journal tagged ``method=ai``."""
        proposal = classification.proposal
        if proposal is None:
            return None

        chart = self._account_mapping.chart(event.organization_id)
        lines = []
        for proposed in proposal.lines:
            account = chart.get(proposed.account_code)
            if account is None:
                logger.debug("Proposed account %s is not in the chart", proposed.account_code)
                return None
            amount = Money(proposed.amount, event.transaction_currency_code)
            is_debit = proposed.side == "debit"
            lines.append(
                JournalLine(
                    account=account,
                    debit=amount if is_debit else None,
                    credit=None if is_debit else amount,
                    description=proposed.description or classification.reason,
                    smart_code=line_smart_code(event.domain, is_debit),
                ),
            )

        return JournalEntry(
            organization_id=event.organization_id,
            transaction_date=event.transaction_date,
            lines=lines,
            smart_code=journal_smart_code(event.domain, JournalKind.AI),
            source_smart_code=event.smart_code,
            kind=JournalKind.AI,
            description=f"AI journal for {event.transaction_type}",
            method=ClassificationMethod.AI,
            confidence=classification.confidence,
            source_transaction_id=source_transaction_id,
        )

    def _build_pos_eod(
        self,
        event: UniversalFinanceEvent,
        source_transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        totals = event.pos_totals()
        if totals is None:
            logger.debug("POS end-of-day event without totals: %s", event.smart_code)
            return None

        lines = _expand_pos_totals(
            totals,
            self._account_mapping,
            event.transaction_currency_code,
            event.domain,
        )
        if not lines:
            return None

        return JournalEntry(
            organization_id=event.organization_id,
            transaction_date=event.transaction_date,
            lines=lines,
            smart_code=journal_smart_code(event.domain, JournalKind.AUTO),
            source_smart_code=event.smart_code,
            kind=JournalKind.AUTO,
            description=f"POS end-of-day summary {event.transaction_date.isoformat()}",
            source_transaction_id=source_transaction_id,
        )


def _pair(
    rule: PostingRule,
    amount: Money,
    domain: str,
    description: str,
) -> list[JournalLine]:
    return [
        JournalLine(
            account=rule.debit,
            debit=amount,
            description=description,
            smart_code=line_smart_code(domain, is_debit=True),
        ),
        JournalLine(
            account=rule.credit,
            credit=amount,
            description=description,
            smart_code=line_smart_code(domain, is_debit=False),
        ),
    ]


def _expand_pos_totals(
    totals: PosTotals,
    mapping: AccountMappingTable,
    currency: str,
    domain: str,
) -> list[JournalLine]:
    accounts = mapping.pos_eod
    # (account, amount, is_debit, description), debits first
    components: list[tuple[GLAccount, Decimal, bool, str]] = [
        (accounts.cash, totals.cash_collected, True, "Cash collected"),
        (accounts.card_clearing, totals.card_settlement, True, "Card settlement"),
        (accounts.card_fees, totals.fees, True, "Card processing fees"),
        (accounts.sales, totals.gross_sales, False, "Gross sales"),
        (accounts.vat, totals.vat, False, "VAT collected"),
        (accounts.tips, totals.tips, False, "Tips collected"),
    ]

    lines = []
    for account, value, is_debit, description in components:
        if value <= 0:
            continue
        amount = Money(value, currency)
        lines.append(
            JournalLine(
                account=account,
                debit=amount if is_debit else None,
                credit=None if is_debit else amount,
                description=description,
                smart_code=line_smart_code(domain, is_debit),
            ),
        )
    return lines
