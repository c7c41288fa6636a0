"""Ingest one finance event and run it through the posting pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

from hera.application.dtos.posting import BatchInfoDTO, GLLineDTO, IngestionOutcome
from hera.domain.posting.entities import JournalEntry, SourceTransaction
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.repositories import (
    JournalRepository,
    SourceTransactionRepository,
)
from hera.domain.posting.services import (
    AuditLogger,
    BatchAggregator,
    EscalationService,
    JournalProposalProvider,
    OfferResult,
    PostingProcessor,
    RelevanceClassifier,
    RuleJournalBuilder,
)
from hera.domain.posting.value_objects import (
    AUDIT_ERROR_SMART_CODE,
    AccountMappingTable,
    ClassificationResult,
    PostingPolicy,
    ProcessingMode,
    ProcessingResult,
    UniversalFinanceEvent,
)
from hera.domain.shared.exceptions import AccessDeniedError, ValidationError

if TYPE_CHECKING:
    from hera.application.context import OrganizationContext
    from hera.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)


class IngestFinanceEventCommand:
    """Validate, classify, build, post or batch, and audit one event.

    The caller owns the database transaction: on success it commits, on
    any exception it rolls back. Audit records are written independently
    and survive the rollback.
    """

    def __init__(  # NOQA: PLR0913
        self,
        source_repository: SourceTransactionRepository,
        journal_repository: JournalRepository,
        classifier: RelevanceClassifier,
        builder: RuleJournalBuilder,
        aggregator: BatchAggregator,
        audit_logger: AuditLogger,
    ):
        self._source_repo = source_repository
        self._journal_repo = journal_repository
        self._classifier = classifier
        self._builder = builder
        self._aggregator = aggregator
        self._audit = audit_logger

    @classmethod
    def from_factory(
        cls,
        factory: RepositoryFactory,
        account_mapping: AccountMappingTable,
        policy: PostingPolicy,
        proposal_provider: Optional[JournalProposalProvider] = None,
    ) -> IngestFinanceEventCommand:
        source_repo = factory.source_transaction_repository()
        journal_repo = factory.journal_repository()
        builder = RuleJournalBuilder(account_mapping)
        escalation = EscalationService(
            provider=proposal_provider,
            account_mapping=account_mapping,
            min_confidence=policy.min_ai_confidence,
            timeout=policy.escalation_timeout,
        )
        aggregator = BatchAggregator(
            batch_repository=factory.batch_group_repository(),
            source_repository=source_repo,
            builder=builder,
            posting_processor=PostingProcessor(
                journal_repo,
                timeout=policy.persistence_timeout,
            ),
            immediate_threshold=policy.immediate_threshold,
            batch_threshold=policy.batch_threshold,
        )
        return cls(
            source_repository=source_repo,
            journal_repository=journal_repo,
            classifier=RelevanceClassifier(account_mapping, escalation),
            builder=builder,
            aggregator=aggregator,
            audit_logger=AuditLogger(factory.audit_repository()),
        )

    async def execute(
        self,
        raw_event: Any,
        context: OrganizationContext,
    ) -> IngestionOutcome:
        await self._check_tenant(raw_event, context)
        event = await self._validate(raw_event, context)

        source = SourceTransaction(event)
        classification: Optional[ClassificationResult] = None
        try:
            replay = await self._replay(event)
            if replay is not None:
                return replay

            await self._source_repo.save(source)

            classification = await self._classifier.classify(event)
            journal, classification = await self._build_journal(
                event,
                source,
                classification,
            )
            source.classify(classification.to_audit())

            if journal is None:
                return await self._skip(source, classification)

            offer = await self._aggregator.offer(source, journal)
            return await self._posted(source, classification, offer)
        except PostingError as e:
            # Store failures included; the caller rolls back and may retry
            await self._audit.record(
                organization_id=event.organization_id,
                source_smart_code=event.smart_code,
                result=ProcessingResult.POSTING_FAILED,
                source_transaction_id=source.id,
                method=classification.method.value if classification else None,
                confidence=classification.confidence if classification else None,
                details={"error": e.to_dict(), **e.details},
            )
            raise

    async def _check_tenant(self, raw_event: Any, context: OrganizationContext) -> None:
        requested = _raw_organization_id(raw_event)
        if requested is None or requested == context.organization_id:
            return

        error = AccessDeniedError(context.organization_id, requested)
        logger.warning(
            "Rejected event for organization %s from tenant %s (%s)",
            requested,
            context.organization_id,
            context.subject,
        )
        await self._audit.record(
            organization_id=context.organization_id,
            source_smart_code=_raw_smart_code(raw_event),
            result=ProcessingResult.ACCESS_DENIED,
            details=error.details,
        )
        raise error

    async def _validate(
        self,
        raw_event: Any,
        context: OrganizationContext,
    ) -> UniversalFinanceEvent:
        try:
            event = UniversalFinanceEvent.parse(raw_event)
        except ValidationError as e:
            logger.info(
                "Finance event rejected: %d field error(s)",
                len(e.field_errors),
            )
            await self._audit.record(
                organization_id=context.organization_id,
                source_smart_code=_raw_smart_code(raw_event),
                result=ProcessingResult.VALIDATION_FAILED,
                details={"field_errors": [fe.to_dict() for fe in e.field_errors]},
            )
            raise

        # The raw check skips unparseable ids; the validated event must match
        await self._check_tenant({"organization_id": event.organization_id}, context)
        return event

    async def _replay(self, event: UniversalFinanceEvent) -> Optional[IngestionOutcome]:
        key = event.idempotency_key
        if key is None:
            return None

        existing = await self._source_repo.find_by_idempotency_key(key)
        if existing is None:
            return None

        journal = None
        if existing.journal_entry_id is not None:
            journal = await self._journal_repo.find_by_id(existing.journal_entry_id)

        logger.info("Replaying stored outcome for %s (%s)", existing.id, key)
        await self._audit.record(
            organization_id=event.organization_id,
            source_smart_code=event.smart_code,
            result=ProcessingResult.DUPLICATE_REPLAYED,
            source_transaction_id=existing.id,
            journal_entry_id=existing.journal_entry_id,
            details={"idempotency_key": key},
        )
        return IngestionOutcome(
            transaction_id=existing.id,
            organization_id=event.organization_id,
            smart_code=event.smart_code,
            processing_mode=existing.processing_mode or ProcessingMode.SKIPPED,
            processing_result=existing.processing_result
            or ProcessingResult.NOT_BUILDABLE,
            classification=existing.classification,
            journal_entry_id=existing.journal_entry_id,
            posting_period=journal.posting_period if journal else None,
            gl_lines=GLLineDTO.from_lines(journal.lines) if journal else [],
            replayed=True,
        )

    async def _build_journal(
        self,
        event: UniversalFinanceEvent,
        source: SourceTransaction,
        classification: ClassificationResult,
    ) -> tuple[Optional[JournalEntry], ClassificationResult]:
        if not classification.is_relevant:
            return None, classification

        if classification.proposal is not None:
            journal = self._builder.build_from_proposal(event, source.id, classification)
            return journal, classification

        journal = self._builder.build(event, source.id)
        if journal is not None:
            return journal, classification

        if event.total_amount == 0:
            return None, _not_buildable(classification, "Zero-value transaction")

        # Relevant by rule but the rule table cannot express it
        logger.info(
            "No rule journal for '%s' (%s); escalating",
            event.transaction_type,
            event.smart_code,
        )
        escalated = await self._classifier.escalate(event)
        if not escalated.is_relevant:
            return None, escalated
        journal = self._builder.build_from_proposal(event, source.id, escalated)
        return journal, escalated

    async def _skip(
        self,
        source: SourceTransaction,
        classification: ClassificationResult,
    ) -> IngestionOutcome:
        event = source.event
        result = classification.outcome or ProcessingResult.NOT_BUILDABLE
        source.mark_not_posted(result)
        await self._source_repo.save(source)

        logger.info(
            "No journal for %s '%s': %s (%s)",
            source.id,
            event.transaction_type,
            result.value,
            classification.reason,
        )
        await self._audit.record(
            organization_id=event.organization_id,
            source_smart_code=event.smart_code,
            result=result,
            source_transaction_id=source.id,
            method=classification.method.value,
            confidence=classification.confidence,
            details={"reason": classification.reason},
        )
        return IngestionOutcome(
            transaction_id=source.id,
            organization_id=event.organization_id,
            smart_code=event.smart_code,
            processing_mode=ProcessingMode.SKIPPED,
            processing_result=result,
            classification=classification.to_audit(),
        )

    async def _posted(
        self,
        source: SourceTransaction,
        classification: ClassificationResult,
        offer: OfferResult,
    ) -> IngestionOutcome:
        event = source.event
        posting = offer.posting
        batch = None
        if not offer.posted_immediately:
            batch = BatchInfoDTO(
                batch_group_id=offer.batch_group_id,
                running_total=offer.running_total,
                member_count=len(offer.member_transaction_ids),
                flushed=offer.flushed,
            )

        if offer.posted_immediately:
            result = ProcessingResult.POSTED
        elif offer.flushed:
            result = ProcessingResult.BATCH_POSTED
        else:
            result = ProcessingResult.BATCHED

        details: dict[str, Any] = {"reason": offer.reason}
        if posting is not None:
            details.update(posting.journal.audit_details())
        if batch is not None:
            details["batch_group_id"] = str(batch.batch_group_id)
            details["running_total"] = str(batch.running_total)
            details["member_transaction_ids"] = [
                str(i) for i in offer.member_transaction_ids
            ]

        await self._audit.record(
            organization_id=event.organization_id,
            source_smart_code=event.smart_code,
            result=result,
            source_transaction_id=source.id,
            journal_entry_id=posting.journal_entry_id if posting else None,
            method=classification.method.value,
            confidence=classification.confidence,
            details=details,
        )
        return IngestionOutcome(
            transaction_id=source.id,
            organization_id=event.organization_id,
            smart_code=event.smart_code,
            processing_mode=ProcessingMode.IMMEDIATE
            if offer.posted_immediately
            else ProcessingMode.BATCHED,
            processing_result=result,
            classification=classification.to_audit(),
            journal_entry_id=posting.journal_entry_id if posting else None,
            posting_period=posting.posting_period if posting else None,
            gl_lines=GLLineDTO.from_lines(posting.lines) if posting else [],
            batch=batch,
        )


def _not_buildable(
    classification: ClassificationResult,
    reason: str,
) -> ClassificationResult:
    return classification.model_copy(
        update={
            "is_relevant": False,
            "reason": reason,
            "outcome": ProcessingResult.NOT_BUILDABLE,
        },
    )


def _raw_organization_id(raw_event: Any) -> Optional[UUID]:
    if not isinstance(raw_event, dict):
        return None
    value = raw_event.get("organization_id")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _raw_smart_code(raw_event: Any) -> str:
    if isinstance(raw_event, dict) and isinstance(raw_event.get("smart_code"), str):
        return raw_event["smart_code"][:100]
    return AUDIT_ERROR_SMART_CODE
