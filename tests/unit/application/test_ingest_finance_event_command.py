"""Tests for IngestFinanceEventCommand, end to end on a SQLite store."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy.exc import OperationalError

from hera.application.commands import IngestFinanceEventCommand
from hera.domain.posting.entities import SourceStatus
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.services import (
    AuditLogger,
    BatchAggregator,
    EscalationService,
    PostingProcessor,
    RelevanceClassifier,
    RuleJournalBuilder,
)
from hera.domain.posting.value_objects import (
    JournalProposal,
    ProcessingMode,
    ProcessingResult,
    ProposedLine,
)
from hera.domain.shared.exceptions import (
    AccessDeniedError,
    ErrorCode,
    ValidationError,
)
from hera.infrastructure.persistence.sqlalchemy.repositories import (
    BatchGroupRepositorySQLAlchemy,
    SourceTransactionRepositorySQLAlchemy,
)
from tests.shared.fixtures.factories import (
    TestOrganizationFactory,
    event_payload,
    pos_eod_payload,
)
from tests.shared.fixtures.pipeline import PipelineHarness
from tests.shared.fixtures.providers import StaticProposalProvider, write_off_proposal


class TestImmediatePosting:
    async def test_large_expense_is_posted(self, pipeline):
        raw = event_payload(
            transaction_type="TX.FINANCE.EXPENSE.V1",
            smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
            total_amount="15000.00",
        )

        outcome = await pipeline.ingest(raw)

        assert outcome.processing_mode is ProcessingMode.IMMEDIATE
        assert outcome.processing_result is ProcessingResult.POSTED
        assert outcome.posting_period == "2024-06"
        assert outcome.classification["method"] == "rule"
        assert [
            (line.account_code, line.debit_amount, line.credit_amount)
            for line in outcome.gl_lines
        ] == [
            ("6000", Decimal("15000.00"), None),
            ("1000", None, Decimal("15000.00")),
        ]

        (business,) = await pipeline.business_rows()
        assert business.id == outcome.transaction_id
        assert business.status == SourceStatus.POSTED.value
        assert business.journal_entry_id == outcome.journal_entry_id

        (journal,) = await pipeline.journal_rows()
        assert journal.id == outcome.journal_entry_id
        assert journal.source_transaction_id == outcome.transaction_id
        assert journal.posting_period == "2024-06"
        assert journal.smart_code == "HERA.FINANCE.GL.TXN.JE.AUTO.v1"
        assert await pipeline.line_count() == 2

        (audit,) = await pipeline.audit_rows()
        assert audit.status == ProcessingResult.POSTED.value
        assert audit.source_transaction_id == outcome.transaction_id

    async def test_pos_end_of_day_is_posted(self, pipeline):
        outcome = await pipeline.ingest(pos_eod_payload())

        assert outcome.processing_result is ProcessingResult.POSTED
        assert len(outcome.gl_lines) == 6
        assert await pipeline.line_count() == 6


class TestBatching:
    async def test_small_sale_joins_a_batch_group(self, pipeline):
        outcome = await pipeline.ingest(
            event_payload(transaction_type="sale", total_amount="45.50"),
        )

        assert outcome.processing_mode is ProcessingMode.BATCHED
        assert outcome.processing_result is ProcessingResult.BATCHED
        assert outcome.journal_entry_id is None
        assert outcome.gl_lines == []
        assert outcome.batch is not None
        assert outcome.batch.running_total == Decimal("45.50")
        assert outcome.batch.member_count == 1
        assert not outcome.batch.flushed

        assert await pipeline.journal_rows() == []
        assert await pipeline.open_batch_groups() == 1
        (business,) = await pipeline.business_rows()
        assert business.status == SourceStatus.BATCH_PENDING.value

    async def test_sixth_sale_flushes_the_group(self, pipeline):
        outcomes = [
            await pipeline.ingest(event_payload(transaction_type="sale", total_amount=a))
            for a in ["25.50", "45.75", "67.25", "89.00", "35.25"]
        ]
        assert outcomes[-1].batch.running_total == Decimal("262.75")
        assert await pipeline.journal_rows() == []

        last = await pipeline.ingest(
            event_payload(transaction_type="sale", total_amount="250.00"),
        )

        assert last.processing_result is ProcessingResult.BATCH_POSTED
        assert last.batch.flushed
        assert last.batch.running_total == Decimal("512.75")
        assert last.batch.member_count == 6

        (journal,) = await pipeline.journal_rows()
        assert journal.total_amount == Decimal("512.75")
        assert journal.smart_code == "HERA.SALON.GL.TXN.JE.BATCH.v1"
        assert await pipeline.open_batch_groups() == 0

        business = await pipeline.business_rows()
        assert len(business) == 6
        assert {row.status for row in business} == {SourceStatus.BATCHED.value}
        assert {row.journal_entry_id for row in business} == {journal.id}

    async def test_batched_transaction_points_at_summary(self, pipeline):
        first = await pipeline.ingest(event_payload(transaction_type="sale", total_amount="300"))
        await pipeline.ingest(event_payload(transaction_type="sale", total_amount="300"))

        view = await pipeline.transaction_journal(first.transaction_id)

        assert view.status == SourceStatus.BATCHED.value
        assert view.processing_result == ProcessingResult.BATCH_POSTED.value
        assert view.journal is not None
        assert view.journal.total_amount == Decimal("600.00")
        assert first.transaction_id in view.journal.member_transaction_ids
        assert [a.processing_result for a in view.audit_trail] == ["batched"]

    async def test_sweep_flushes_leftovers(self, pipeline):
        await pipeline.ingest(event_payload(transaction_type="sale", total_amount="40"))
        await pipeline.ingest(
            event_payload(
                transaction_type="sale",
                total_amount="60",
                transaction_date=date(2024, 6, 16),
            ),
        )

        swept = await pipeline.sweep(before=date(2024, 6, 16))

        assert [(r.batch_date, r.total_amount) for r in swept] == [
            (date(2024, 6, 15), Decimal("40.00")),
        ]
        assert await pipeline.open_batch_groups() == 1
        assert len(await pipeline.journal_rows()) == 1

        swept = await pipeline.sweep()

        assert len(swept) == 1
        assert await pipeline.open_batch_groups() == 0


class TestNotPosted:
    async def test_zero_amount_reservation_is_recorded(self, pipeline):
        outcome = await pipeline.ingest(
            event_payload(
                transaction_type="reservation",
                smart_code="HERA.SALON.APPT.RESERVATION.NEW.V1",
                total_amount="0",
            ),
        )

        assert outcome.processing_mode is ProcessingMode.SKIPPED
        assert outcome.processing_result is ProcessingResult.SKIPPED_NOT_RELEVANT
        assert outcome.classification["is_relevant"] is False
        assert outcome.journal_entry_id is None

        (business,) = await pipeline.business_rows()
        assert business.status == SourceStatus.NOT_POSTED.value
        assert await pipeline.journal_rows() == []

    async def test_unknown_type_without_escalation(self, pipeline):
        outcome = await pipeline.ingest(
            event_payload(transaction_type="custom_adjustment", total_amount="80.00"),
        )

        assert outcome.processing_result is ProcessingResult.ESCALATION_FAILED
        assert outcome.classification["confidence"] == 0.0
        assert await pipeline.journal_rows() == []

    async def test_pos_end_of_day_without_totals(self, pipeline):
        outcome = await pipeline.ingest(
            event_payload(
                transaction_type="pos_eod",
                business_context={"channel": "POS"},
            ),
        )

        assert outcome.processing_mode is ProcessingMode.SKIPPED
        assert outcome.processing_result is ProcessingResult.ESCALATION_FAILED


class TestEscalation:
    async def test_low_confidence_proposal_rejected(
        self,
        sqlite_session_maker,
        account_mapping,
        posting_policy,
    ):
        provider = StaticProposalProvider(write_off_proposal(confidence=0.3))
        pipeline = PipelineHarness(
            sqlite_session_maker,
            account_mapping,
            posting_policy,
            provider,
        )

        outcome = await pipeline.ingest(
            event_payload(transaction_type="custom_adjustment", total_amount="80.00"),
        )

        assert outcome.processing_result is ProcessingResult.REJECTED_LOW_CONFIDENCE
        assert outcome.journal_entry_id is None
        assert await pipeline.journal_rows() == []

        (audit,) = await pipeline.audit_rows()
        assert audit.status == "rejected_low_confidence"
        assert audit.business_context["method"] == "ai"
        assert audit.business_context["confidence"] == 0.3

    async def test_accepted_proposal_is_posted_immediately(
        self,
        sqlite_session_maker,
        account_mapping,
        posting_policy,
    ):
        provider = StaticProposalProvider(write_off_proposal(confidence=0.85))
        pipeline = PipelineHarness(
            sqlite_session_maker,
            account_mapping,
            posting_policy,
            provider,
        )

        outcome = await pipeline.ingest(
            event_payload(transaction_type="custom_adjustment", total_amount="80.00"),
        )

        assert outcome.processing_result is ProcessingResult.POSTED
        assert outcome.classification["method"] == "ai"
        assert [line.account_code for line in outcome.gl_lines] == ["5000", "1000"]

        (journal,) = await pipeline.journal_rows()
        assert journal.smart_code == "HERA.FINANCE.GL.TXN.JE.AI.v1"
        assert journal.business_context["method"] == "ai"
        assert journal.business_context["confidence"] == 0.85
        assert len(provider.requests) == 1

    async def test_proposal_with_unknown_account_is_not_posted(
        self,
        sqlite_session_maker,
        account_mapping,
        posting_policy,
    ):
        proposal = JournalProposal(
            lines=[
                ProposedLine(
                    account_code="SUSPENSE-ACCOUNT-XXXXXXXX",
                    side="debit",
                    amount=Decimal("80.00"),
                ),
                ProposedLine(account_code="1000", side="credit", amount=Decimal("80.00")),
            ],
            confidence=0.9,
        )
        pipeline = PipelineHarness(
            sqlite_session_maker,
            account_mapping,
            posting_policy,
            StaticProposalProvider(proposal),
        )

        outcome = await pipeline.ingest(
            event_payload(transaction_type="custom_adjustment", total_amount="80.00"),
        )

        assert outcome.processing_result is ProcessingResult.REJECTED_UNKNOWN_ACCOUNT
        assert outcome.journal_entry_id is None
        assert await pipeline.journal_rows() == []

        (audit,) = await pipeline.audit_rows()
        assert audit.status == "rejected_unknown_account"
        assert audit.business_context["method"] == "ai"


class TestRejections:
    async def test_tenant_mismatch_writes_nothing_but_audit(self, pipeline):
        raw = event_payload(organization_id=TestOrganizationFactory.OTHER_ID)

        with pytest.raises(AccessDeniedError):
            await pipeline.ingest(raw)

        assert await pipeline.business_rows() == []
        assert await pipeline.journal_rows() == []
        (audit,) = await pipeline.audit_rows()
        assert audit.status == ProcessingResult.ACCESS_DENIED.value
        assert audit.organization_id == TestOrganizationFactory.DEFAULT_ID
        assert audit.transaction_metadata["requested_organization_id"] == str(
            TestOrganizationFactory.OTHER_ID,
        )

    async def test_invalid_event_is_audited(self, pipeline):
        raw = event_payload(total_amount="-5")

        with pytest.raises(ValidationError) as exc_info:
            await pipeline.ingest(raw)

        assert exc_info.value.code is ErrorCode.VALIDATION_FAILED
        assert await pipeline.business_rows() == []
        (audit,) = await pipeline.audit_rows()
        assert audit.status == ProcessingResult.VALIDATION_FAILED.value
        assert audit.smart_code == "HERA.FIN.GL.AUTO.JOURNAL.ERROR.v1"

    async def test_caller_supplied_lines_rejected(self, pipeline):
        raw = event_payload(lines=[{"account_code": "6000", "debit_amount": "1"}])

        with pytest.raises(ValidationError) as exc_info:
            await pipeline.ingest(raw)

        assert [fe.field for fe in exc_info.value.field_errors] == ["lines"]
        assert await pipeline.business_rows() == []


class TestIdempotency:
    async def test_retry_replays_stored_outcome(self, pipeline):
        raw = event_payload(total_amount="1500.00", metadata={"original_ref": "EXP-77"})

        first = await pipeline.ingest(raw)
        second = await pipeline.ingest(raw)

        assert not first.replayed
        assert second.replayed
        assert second.transaction_id == first.transaction_id
        assert second.journal_entry_id == first.journal_entry_id
        assert second.processing_result is ProcessingResult.POSTED
        assert second.gl_lines == first.gl_lines

        assert len(await pipeline.business_rows()) == 1
        assert len(await pipeline.journal_rows()) == 1
        statuses = [row.status for row in await pipeline.audit_rows()]
        assert sorted(statuses) == ["duplicate_replayed", "posted"]

    async def test_different_reference_is_a_new_event(self, pipeline):
        await pipeline.ingest(event_payload(metadata={"original_ref": "A"}))
        await pipeline.ingest(event_payload(metadata={"original_ref": "B"}))

        assert len(await pipeline.business_rows()) == 2


class TestPostingFailure:
    """Store failures surface as PostingError and are audited."""

    @pytest.fixture
    def command(self, account_mapping) -> tuple[IngestFinanceEventCommand, AsyncMock]:
        source_repo = AsyncMock()
        source_repo.find_by_idempotency_key.return_value = None
        journal_repo = AsyncMock()
        journal_repo.add.side_effect = ConnectionResetError("db gone")
        audit_repo = AsyncMock()

        builder = RuleJournalBuilder(account_mapping)
        aggregator = BatchAggregator(
            batch_repository=AsyncMock(),
            source_repository=source_repo,
            builder=builder,
            posting_processor=PostingProcessor(journal_repo),
        )
        command = IngestFinanceEventCommand(
            source_repository=source_repo,
            journal_repository=journal_repo,
            classifier=RelevanceClassifier(
                account_mapping,
                EscalationService(None, account_mapping),
            ),
            builder=builder,
            aggregator=aggregator,
            audit_logger=AuditLogger(audit_repo),
        )
        return command, audit_repo

    async def test_failure_is_audited_and_raised(self, command, organization_context):
        command, audit_repo = command

        with pytest.raises(PostingError) as exc_info:
            await command.execute(
                event_payload(total_amount="5000.00"),
                organization_context,
            )

        assert exc_info.value.code is ErrorCode.PERSISTENCE_FAILED
        record = audit_repo.append.await_args.args[0]
        assert record.processing_result is ProcessingResult.POSTING_FAILED
        assert record.details["error"]["code"] == "PERSISTENCE_FAILED"
        assert isinstance(record.source_transaction_id, UUID)


def _lost_connection(*_args, **_kwargs):
    raise OperationalError(
        "SELECT batch_groups",
        {},
        Exception("server closed the connection unexpectedly"),
    )


class TestStoreFailures:
    """Driver errors inside repositories become audited PostingErrors."""

    async def test_batch_update_failure(self, pipeline, monkeypatch):
        monkeypatch.setattr(
            BatchGroupRepositorySQLAlchemy,
            "_lock_group",
            AsyncMock(side_effect=_lost_connection),
        )

        with pytest.raises(PostingError) as exc_info:
            await pipeline.ingest(
                event_payload(transaction_type="sale", total_amount="45.50"),
            )

        assert exc_info.value.code is ErrorCode.PERSISTENCE_FAILED
        assert exc_info.value.details["store_operation"] == "batch group update"
        assert await pipeline.business_rows() == []
        assert await pipeline.open_batch_groups() == 0

        (audit,) = await pipeline.audit_rows()
        assert audit.business_context["processing_result"] == "posting_failed"
        assert audit.business_context["method"] == "rule"
        error = audit.transaction_metadata["error"]
        assert error["code"] == "PERSISTENCE_FAILED"

    async def test_member_marking_failure_rolls_back_flush(
        self,
        pipeline,
        monkeypatch,
    ):
        await pipeline.ingest(event_payload(transaction_type="sale", total_amount="300"))
        monkeypatch.setattr(
            SourceTransactionRepositorySQLAlchemy,
            "_mark_batched",
            AsyncMock(side_effect=_lost_connection),
        )

        with pytest.raises(PostingError):
            await pipeline.ingest(
                event_payload(transaction_type="sale", total_amount="300"),
            )

        assert await pipeline.journal_rows() == []
        assert await pipeline.open_batch_groups() == 1
        results = [
            a.business_context["processing_result"] for a in await pipeline.audit_rows()
        ]
        assert results == ["batched", "posting_failed"]

    async def test_idempotency_lookup_failure(self, pipeline, monkeypatch):
        monkeypatch.setattr(
            SourceTransactionRepositorySQLAlchemy,
            "find_by_idempotency_key",
            AsyncMock(
                side_effect=PostingError(
                    "Store failure during idempotency lookup; retry the event",
                ),
            ),
        )

        with pytest.raises(PostingError):
            await pipeline.ingest(
                event_payload(metadata={"original_ref": "EXP-2024-002"}),
            )

        (audit,) = await pipeline.audit_rows()
        assert audit.business_context["processing_result"] == "posting_failed"
        assert audit.business_context["method"] is None
