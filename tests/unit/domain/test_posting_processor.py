"""Tests for PostingProcessor."""

import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from hera.domain.posting.entities import JournalEntry, JournalLine
from hera.domain.posting.exceptions import (
    PersistenceTimeoutError,
    PostingError,
    UnbalancedJournalError,
)
from hera.domain.posting.services import PostingProcessor
from hera.domain.posting.value_objects import GLAccount, JournalKind, Money
from hera.domain.shared.exceptions import ErrorCode
from tests.shared.fixtures.factories import TestOrganizationFactory

EXPENSE = GLAccount(code="6000", name="Operating Expense")
CASH = GLAccount(code="1000", name="Cash - Bank Account")


def _journal(debit: str = "100.00", credit: str = "100.00") -> JournalEntry:
    return JournalEntry(
        organization_id=TestOrganizationFactory.DEFAULT_ID,
        transaction_date=date(2024, 6, 15),
        lines=[
            JournalLine(account=EXPENSE, debit=Money(debit, "AED")),
            JournalLine(account=CASH, credit=Money(credit, "AED")),
        ],
        smart_code="HERA.FINANCE.GL.TXN.JE.AUTO.v1",
        source_smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
        kind=JournalKind.AUTO,
        description="Operating expense",
    )


@pytest.fixture
def journal_repo() -> AsyncMock:
    return AsyncMock()


async def test_posts_balanced_journal(journal_repo):
    journal = _journal()

    result = await PostingProcessor(journal_repo).post(journal)

    journal_repo.add.assert_awaited_once_with(journal)
    assert result.journal_entry_id == journal.id
    assert result.posting_period == "2024-06"
    assert len(result.lines) == 2


async def test_unbalanced_journal_never_reaches_store(journal_repo):
    with pytest.raises(UnbalancedJournalError) as exc_info:
        await PostingProcessor(journal_repo).post(_journal(credit="99.00"))

    journal_repo.add.assert_not_called()
    assert exc_info.value.code is ErrorCode.UNBALANCED_JOURNAL
    assert exc_info.value.details["imbalances"] == {"AED": "1.00"}
    assert len(exc_info.value.details["attempted_lines"]) == 2


async def test_store_timeout(journal_repo):
    async def slow(_journal):
        await asyncio.sleep(5)

    journal_repo.add.side_effect = slow

    with pytest.raises(PersistenceTimeoutError) as exc_info:
        await PostingProcessor(journal_repo, timeout=0.05).post(_journal())

    assert exc_info.value.code is ErrorCode.PERSISTENCE_TIMEOUT


async def test_store_failure_is_wrapped(journal_repo):
    journal_repo.add.side_effect = ConnectionResetError("db gone")

    with pytest.raises(PostingError) as exc_info:
        await PostingProcessor(journal_repo).post(_journal())

    assert exc_info.value.code is ErrorCode.PERSISTENCE_FAILED
    assert exc_info.value.details == {"error_type": "ConnectionResetError"}


async def test_posting_errors_pass_through(journal_repo):
    journal_repo.add.side_effect = PostingError("conflict")

    with pytest.raises(PostingError, match="conflict"):
        await PostingProcessor(journal_repo).post(_journal())


def test_empty_journal_is_unbalanced():
    journal = JournalEntry(
        organization_id=TestOrganizationFactory.DEFAULT_ID,
        transaction_date=date(2024, 6, 15),
        lines=[],
        smart_code="HERA.FINANCE.GL.TXN.JE.AUTO.v1",
        source_smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
        kind=JournalKind.AUTO,
        description="empty",
    )

    assert not journal.is_balanced()
    with pytest.raises(UnbalancedJournalError):
        journal.validate_balance()


def test_journal_line_requires_exactly_one_side():
    with pytest.raises(ValueError):
        JournalLine(account=CASH)
    with pytest.raises(ValueError):
        JournalLine(
            account=CASH,
            debit=Money("1.00", "AED"),
            credit=Money("1.00", "AED"),
        )
    with pytest.raises(ValueError):
        JournalLine(account=CASH, debit=Money(Decimal("0"), "AED"))
