"""Tests for AuditLogger."""

import logging
from unittest.mock import AsyncMock
from uuid import uuid4

from hera.domain.posting.services import AuditLogger
from hera.domain.posting.value_objects import AuditRecord, ProcessingResult
from tests.shared.fixtures.factories import TestOrganizationFactory


async def test_record_is_appended():
    repo = AsyncMock()
    source_id, journal_id = uuid4(), uuid4()

    record = await AuditLogger(repo).record(
        organization_id=TestOrganizationFactory.DEFAULT_ID,
        source_smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
        result=ProcessingResult.POSTED,
        source_transaction_id=source_id,
        journal_entry_id=journal_id,
        method="rule",
        confidence=1.0,
        details={"reason": "above_immediate_threshold"},
    )

    repo.append.assert_awaited_once()
    stored: AuditRecord = repo.append.await_args.args[0]
    assert stored == record
    assert stored.processing_result is ProcessingResult.POSTED
    assert stored.source_transaction_id == source_id
    assert stored.journal_entry_id == journal_id
    assert stored.details == {"reason": "above_immediate_threshold"}


async def test_store_failure_never_propagates(caplog):
    repo = AsyncMock()
    repo.append.side_effect = RuntimeError("audit store down")

    with caplog.at_level(logging.WARNING, logger="hera.audit"):
        record = await AuditLogger(repo).record(
            organization_id=TestOrganizationFactory.DEFAULT_ID,
            source_smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
            result=ProcessingResult.POSTING_FAILED,
        )

    assert record is None
    assert "could not be stored" in caplog.text
    assert "posting_failed" in caplog.text


async def test_without_store_logs_only(caplog):
    with caplog.at_level(logging.INFO, logger="hera.audit"):
        record = await AuditLogger(None).record(
            organization_id=TestOrganizationFactory.DEFAULT_ID,
            source_smart_code="HERA.FINANCE.EXPENSE.OPEX.V1",
            result=ProcessingResult.SKIPPED_NOT_RELEVANT,
        )

    assert record is not None
    assert "skipped_not_relevant" in caplog.text


def test_failure_results():
    assert ProcessingResult.VALIDATION_FAILED.is_failure
    assert ProcessingResult.ACCESS_DENIED.is_failure
    assert ProcessingResult.POSTING_FAILED.is_failure
    assert not ProcessingResult.SKIPPED_NOT_RELEVANT.is_failure
