"""Tests for BatchAggregator decisions and flushing."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from hera.domain.posting.aggregates import BatchGroup
from hera.domain.posting.entities import SourceStatus, SourceTransaction
from hera.domain.posting.exceptions import PostingError
from hera.domain.posting.services import (
    BatchAggregator,
    PostingProcessor,
    RuleJournalBuilder,
)
from hera.domain.posting.value_objects import ProcessingResult
from tests.shared.fixtures.factories import TestOrganizationFactory, make_event


class InMemoryBatchGroups:
    """Batch group store keyed like the real one."""

    def __init__(self):
        self.groups: dict[tuple, BatchGroup] = {}

    async def add_member(  # NOQA: PLR0913
        self,
        transaction_type,
        batch_date,
        currency,
        source_smart_code,
        transaction_id,
        amount,
    ):
        key = (transaction_type, batch_date)
        group = self.groups.get(key)
        if group is None:
            group = BatchGroup(
                organization_id=TestOrganizationFactory.DEFAULT_ID,
                transaction_type=transaction_type,
                batch_date=batch_date,
                currency=currency,
                source_smart_code=source_smart_code,
            )
            self.groups[key] = group
        group.add_member(transaction_id, amount, currency)
        return group

    async def find_open(self, before=None):
        return [
            g for g in self.groups.values() if before is None or g.batch_date < before
        ]

    async def delete(self, group):
        self.groups.pop((group.transaction_type, group.batch_date), None)


@pytest.fixture
def batch_repo() -> InMemoryBatchGroups:
    return InMemoryBatchGroups()


@pytest.fixture
def source_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.mark_batched.side_effect = lambda ids, _journal_id: len(ids)
    return repo


@pytest.fixture
def journal_repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def builder(account_mapping) -> RuleJournalBuilder:
    return RuleJournalBuilder(account_mapping)


@pytest.fixture
def aggregator(batch_repo, source_repo, journal_repo, builder) -> BatchAggregator:
    return BatchAggregator(
        batch_repository=batch_repo,
        source_repository=source_repo,
        builder=builder,
        posting_processor=PostingProcessor(journal_repo),
        immediate_threshold=Decimal("1000"),
        batch_threshold=Decimal("500"),
    )


async def _offer(aggregator, builder, **event_kwargs):
    source = SourceTransaction(make_event(**event_kwargs))
    journal = builder.build(source.event, source.id)
    assert journal is not None
    return source, await aggregator.offer(source, journal)


class TestImmediateDecisions:
    @pytest.mark.parametrize(
        ("event_kwargs", "reason"),
        [
            ({"total_amount": "15000.00"}, "above_immediate_threshold"),
            (
                {"smart_code": "HERA.FINANCE.EXPENSE.CRITICAL.V1"},
                "critical",
            ),
            ({"metadata": {"immediate_posting": True}}, "critical"),
            ({"transaction_type": "receipt"}, "cash_movement"),
            ({"transaction_type": "payment"}, "cash_movement"),
        ],
    )
    async def test_posted_now(
        self,
        aggregator,
        builder,
        journal_repo,
        source_repo,
        event_kwargs,
        reason,
    ):
        source, result = await _offer(aggregator, builder, **event_kwargs)

        assert result.posted_immediately
        assert result.reason == reason
        journal_repo.add.assert_awaited_once()
        source_repo.save.assert_awaited_once_with(source)
        assert source.status is SourceStatus.POSTED
        assert source.processing_result is ProcessingResult.POSTED

    async def test_exactly_at_immediate_threshold_is_batched(self, aggregator, builder):
        _, result = await _offer(aggregator, builder, total_amount="1000.00")

        assert not result.posted_immediately


class TestBatching:
    async def test_small_expenses_accumulate_then_flush(
        self,
        aggregator,
        builder,
        batch_repo,
        journal_repo,
        source_repo,
    ):
        results = []
        sources = []
        for amount in ["25.50", "45.75", "67.25", "89.00", "35.25"]:
            source, result = await _offer(aggregator, builder, total_amount=amount)
            sources.append(source)
            results.append(result)

        assert [r.running_total for r in results] == [
            Decimal("25.50"),
            Decimal("71.25"),
            Decimal("138.50"),
            Decimal("227.50"),
            Decimal("262.75"),
        ]
        assert all(not r.flushed for r in results)
        assert all(s.status is SourceStatus.BATCH_PENDING for s in sources)
        journal_repo.add.assert_not_called()

        last_source, last = await _offer(aggregator, builder, total_amount="250.00")

        assert last.flushed
        assert last.reason == "batch_threshold_reached"
        assert last.running_total == Decimal("512.75")
        assert len(last.member_transaction_ids) == 6
        assert last_source.status is SourceStatus.BATCHED
        assert last_source.processing_result is ProcessingResult.BATCH_POSTED

        summary = journal_repo.add.await_args.args[0]
        assert summary.total_amount == Decimal("512.75")
        assert summary.description == (
            "Batch Journal - 6 expense transactions on 2024-06-15"
        )
        source_repo.mark_batched.assert_awaited_once()
        assert batch_repo.groups == {}

    async def test_new_group_after_flush(self, aggregator, builder, batch_repo):
        await _offer(aggregator, builder, total_amount="300.00")
        _, flushed = await _offer(aggregator, builder, total_amount="300.00")
        assert flushed.flushed

        _, fresh = await _offer(aggregator, builder, total_amount="40.00")

        assert not fresh.flushed
        assert fresh.running_total == Decimal("40.00")
        assert fresh.batch_group_id != flushed.batch_group_id
        assert len(batch_repo.groups) == 1

    async def test_groups_are_keyed_by_type_and_date(
        self,
        aggregator,
        builder,
        batch_repo,
    ):
        await _offer(aggregator, builder, total_amount="10.00")
        await _offer(aggregator, builder, transaction_type="sale", total_amount="10.00")
        await _offer(
            aggregator,
            builder,
            total_amount="10.00",
            transaction_date=date(2024, 6, 16),
        )

        assert len(batch_repo.groups) == 3

    async def test_group_total_uses_base_currency(self, aggregator, builder):
        source = SourceTransaction(
            make_event(
                currency="USD",
                total_amount="100.00",
                base_currency_code="AED",
                exchange_rate="3.6725",
            ),
        )
        journal = builder.build(source.event, source.id)

        result = await aggregator.offer(source, journal)

        assert result.running_total == Decimal("367.25")

    async def test_other_base_currency_is_posted_now(
        self,
        aggregator,
        builder,
        batch_repo,
        journal_repo,
    ):
        _, first = await _offer(
            aggregator,
            builder,
            transaction_type="sale",
            total_amount="300.00",
        )
        source, second = await _offer(
            aggregator,
            builder,
            transaction_type="sale",
            total_amount="300.00",
            currency="USD",
        )

        assert second.posted_immediately
        assert second.reason == "currency_mismatch"
        assert source.status is SourceStatus.POSTED
        posted = journal_repo.add.await_args.args[0]
        assert {line.currency for line in posted.lines} == {"USD"}

        (group,) = batch_repo.groups.values()
        assert group.id == first.batch_group_id
        assert group.currency == "AED"
        assert group.running_total == Decimal("300.00")
        assert group.member_count == 1


class TestSweep:
    async def test_flushes_open_groups(self, aggregator, builder, batch_repo, journal_repo):
        await _offer(aggregator, builder, total_amount="10.00")
        await _offer(
            aggregator,
            builder,
            total_amount="20.00",
            transaction_date=date(2024, 6, 16),
        )

        flushed = await aggregator.sweep(before=date(2024, 6, 16))

        assert len(flushed) == 1
        assert flushed[0].group.batch_date == date(2024, 6, 15)
        assert flushed[0].posting.journal.total_amount == Decimal("10.00")
        assert len(batch_repo.groups) == 1
        assert journal_repo.add.await_count == 1

    async def test_group_without_rule_cannot_flush(self, aggregator):
        group = BatchGroup(
            organization_id=TestOrganizationFactory.DEFAULT_ID,
            transaction_type="custom_adjustment",
            batch_date=date(2024, 6, 15),
            currency="AED",
            source_smart_code="HERA.FINANCE.ADJUST.CUSTOM.V1",
            member_transaction_ids=[uuid4()],
            running_total=Decimal("10.00"),
        )

        with pytest.raises(PostingError):
            await aggregator.flush(group)
