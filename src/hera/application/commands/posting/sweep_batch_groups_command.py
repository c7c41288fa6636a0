"""Flush open batch groups regardless of their running total."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from hera.application.dtos.posting import GLLineDTO
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.services import (
    AuditLogger,
    BatchAggregator,
    PostingProcessor,
    RuleJournalBuilder,
)
from hera.domain.posting.value_objects import (
    AUDIT_LOG_SMART_CODE,
    AccountMappingTable,
    ClassificationMethod,
    PostingPolicy,
    ProcessingResult,
)

if TYPE_CHECKING:
    from hera.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """One batch group turned into a summary journal."""

    batch_group_id: UUID
    transaction_type: str
    batch_date: date
    member_count: int
    total_amount: Decimal
    journal_entry_id: UUID
    posting_period: str
    gl_lines: list[GLLineDTO]


class SweepBatchGroupsCommand:
    """End-of-day flush of groups that never reached the batch threshold."""

    def __init__(self, aggregator: BatchAggregator, audit_logger: AuditLogger):
        self._aggregator = aggregator
        self._audit = audit_logger

    @classmethod
    def from_factory(
        cls,
        factory: RepositoryFactory,
        account_mapping: AccountMappingTable,
        policy: PostingPolicy,
    ) -> SweepBatchGroupsCommand:
        aggregator = BatchAggregator(
            batch_repository=factory.batch_group_repository(),
            source_repository=factory.source_transaction_repository(),
            builder=RuleJournalBuilder(account_mapping),
            posting_processor=PostingProcessor(
                factory.journal_repository(),
                timeout=policy.persistence_timeout,
            ),
            immediate_threshold=policy.immediate_threshold,
            batch_threshold=policy.batch_threshold,
        )
        return cls(
            aggregator=aggregator,
            audit_logger=AuditLogger(factory.audit_repository()),
        )

    async def execute(
        self,
        organization_id: UUID,
        before: Optional[date] = None,
    ) -> list[SweepResult]:
        try:
            flushed = await self._aggregator.sweep(before)
        except PostingError as e:
            await self._audit.record(
                organization_id=organization_id,
                source_smart_code=AUDIT_LOG_SMART_CODE,
                result=ProcessingResult.POSTING_FAILED,
                method=ClassificationMethod.RULE.value,
                details={"error": e.to_dict(), "operation": "sweep", **e.details},
            )
            raise

        results = []
        for item in flushed:
            group, posting = item.group, item.posting
            await self._audit.record(
                organization_id=organization_id,
                source_smart_code=group.source_smart_code,
                result=ProcessingResult.BATCH_POSTED,
                journal_entry_id=posting.journal_entry_id,
                method=ClassificationMethod.RULE.value,
                confidence=1.0,
                details={
                    "operation": "sweep",
                    "batch_group_id": str(group.id),
                    "member_transaction_ids": [
                        str(i) for i in group.member_transaction_ids
                    ],
                    **posting.journal.audit_details(),
                },
            )
            results.append(
                SweepResult(
                    batch_group_id=group.id,
                    transaction_type=group.transaction_type,
                    batch_date=group.batch_date,
                    member_count=group.member_count,
                    total_amount=group.running_total,
                    journal_entry_id=posting.journal_entry_id,
                    posting_period=posting.posting_period,
                    gl_lines=GLLineDTO.from_lines(posting.lines),
                ),
            )

        logger.info(
            "Swept %d batch group(s) for organization %s",
            len(results),
            organization_id,
        )
        return results
