"""Batch aggregation of small, low-priority transactions.

Decision for each offered journal (first match wins):

1. Amount above the immediate threshold -> post now.
2. Critical smart code or explicit ``immediate_posting`` -> post now.
3. Receipts and payments -> post now.
4. Journals that are not a plain rule pair (AI or POS end-of-day) -> post now.
5. Otherwise append to the group of ``(organization, type, date)``; when
   the running total reaches the batch threshold the group is replaced by
   one summary journal. A member whose base currency differs from the
   open group's is posted now instead (``currency_mismatch``).

The group update and threshold check run under a row lock held by the
repository until the request transaction ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from hera.domain.posting.aggregates import BatchGroup
from hera.domain.posting.entities import JournalEntry, SourceTransaction
from hera.domain.posting.exceptions import BatchCurrencyMismatchError, PostingError
from hera.domain.posting.repositories import (
    BatchGroupRepository,
    SourceTransactionRepository,
)
from hera.domain.posting.services.journal_builder import RuleJournalBuilder
from hera.domain.posting.services.posting_processor import (
    PostingProcessor,
    PostingResult,
)
from hera.domain.posting.value_objects import (
    ClassificationMethod,
    JournalKind,
    UniversalFinanceEvent,
    is_critical,
)
from hera.domain.shared.exceptions import ErrorCode

logger = logging.getLogger(__name__)

IMMEDIATE_TYPES: frozenset[str] = frozenset({"receipt", "payment"})


@dataclass(frozen=True)
class OfferResult:
    """What the aggregator did with one journal."""

    posted_immediately: bool
    reason: str
    posting: Optional[PostingResult] = None
    batch_group_id: Optional[UUID] = None
    running_total: Optional[Decimal] = None
    member_transaction_ids: list[UUID] = field(default_factory=list)

    @property
    def flushed(self) -> bool:
        return not self.posted_immediately and self.posting is not None


@dataclass(frozen=True)
class FlushedGroup:
    group: BatchGroup
    posting: PostingResult


class BatchAggregator:
    """Owns the batch group lifecycle and the ``batched`` status."""

    def __init__(  # NOQA: PLR0913
        self,
        batch_repository: BatchGroupRepository,
        source_repository: SourceTransactionRepository,
        builder: RuleJournalBuilder,
        posting_processor: PostingProcessor,
        immediate_threshold: Decimal = Decimal("1000"),
        batch_threshold: Decimal = Decimal("500"),
    ):
        self._batch_repo = batch_repository
        self._source_repo = source_repository
        self._builder = builder
        self._processor = posting_processor
        self._immediate_threshold = immediate_threshold
        self._batch_threshold = batch_threshold

    def immediate_reason(
        self,
        event: UniversalFinanceEvent,
        journal: JournalEntry,
    ) -> Optional[str]:
        """Return why the journal must be posted now, or None to batch it."""
        if event.total_amount > self._immediate_threshold:
            return "above_immediate_threshold"
        if is_critical(event.smart_code) or event.metadata.immediate_posting:
            return "critical"
        if event.kind in IMMEDIATE_TYPES:
            return "cash_movement"
        if journal.method is ClassificationMethod.AI:
            return "ai_journal"
        if journal.kind is not JournalKind.AUTO or (
            self._builder.rule_for(event.organization_id, event.kind) is None
        ):
            return "not_batchable"
        return None

    async def offer(
        self,
        source: SourceTransaction,
        journal: JournalEntry,
    ) -> OfferResult:
        event = source.event
        reason = self.immediate_reason(event, journal)
        if reason is not None:
            return await self._post_now(source, journal, reason)

        try:
            group = await self._batch_repo.add_member(
                transaction_type=event.kind,
                batch_date=event.transaction_date,
                currency=event.base_currency_code,
                source_smart_code=event.smart_code,
                transaction_id=source.id,
                amount=event.base_amount,
            )
        except BatchCurrencyMismatchError as e:
            logger.warning(
                "Posting %s now: open %s group of %s is in %s, event is in %s",
                source.id,
                event.kind,
                event.transaction_date,
                e.group_currency,
                e.currency,
            )
            return await self._post_now(source, journal, "currency_mismatch")

        source.mark_batch_pending(group.id)
        await self._source_repo.save(source)
        logger.debug("Batched %s into %r", source.id, group)

        if not group.has_reached(self._batch_threshold):
            return OfferResult(
                posted_immediately=False,
                reason="below_batch_threshold",
                batch_group_id=group.id,
                running_total=group.running_total,
                member_transaction_ids=group.member_transaction_ids,
            )

        posting = await self.flush(group)
        source.mark_batched(posting.journal_entry_id)
        return OfferResult(
            posted_immediately=False,
            reason="batch_threshold_reached",
            posting=posting,
            batch_group_id=group.id,
            running_total=group.running_total,
            member_transaction_ids=group.member_transaction_ids,
        )

    async def _post_now(
        self,
        source: SourceTransaction,
        journal: JournalEntry,
        reason: str,
    ) -> OfferResult:
        posting = await self._processor.post(journal)
        source.mark_posted(posting.journal_entry_id)
        await self._source_repo.save(source)
        return OfferResult(posted_immediately=True, reason=reason, posting=posting)

    async def flush(self, group: BatchGroup) -> PostingResult:
        """Post the summary journal of a group and discard the group."""
        journal = self._builder.build_batch_summary(group)
        if journal is None:
            msg = f"No posting rule for batched type '{group.transaction_type}'"
            raise PostingError(
                msg,
                ErrorCode.PROCESSING_FAILED,
                {"batch_group_id": str(group.id)},
            )

        posting = await self._processor.post(journal)
        updated = await self._source_repo.mark_batched(
            group.member_transaction_ids,
            posting.journal_entry_id,
        )
        await self._batch_repo.delete(group)

        logger.info(
            "Flushed batch %s: %d %s transactions, total %s -> journal %s",
            group.id,
            updated,
            group.transaction_type,
            group.running_total,
            posting.journal_entry_id,
        )
        return posting

    async def sweep(self, before: Optional[date] = None) -> list[FlushedGroup]:
        """Flush open groups whatever their total (end-of-day processing)."""
        flushed = []
        for group in await self._batch_repo.find_open(before):
            posting = await self.flush(group)
            flushed.append(FlushedGroup(group=group, posting=posting))
        return flushed
