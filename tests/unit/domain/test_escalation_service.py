"""Tests for EscalationService outcomes."""

import asyncio
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from hera.domain.posting.services import EscalationService, JournalProposalProvider
from hera.domain.posting.value_objects import (
    ClassificationMethod,
    JournalProposal,
    ProcessingResult,
    ProposedLine,
)
from tests.shared.fixtures.factories import make_event


def _proposal(
    debit: str = "80.00",
    credit: str = "80.00",
    confidence: float = 0.9,
) -> JournalProposal:
    return JournalProposal(
        lines=[
            ProposedLine(account_code="5000", side="debit", amount=Decimal(debit)),
            ProposedLine(account_code="1000", side="credit", amount=Decimal(credit)),
        ],
        confidence=confidence,
        reason="Stock write-off",
    )


def _provider(proposal: Optional[JournalProposal] = None) -> AsyncMock:
    provider = AsyncMock(spec=JournalProposalProvider)
    provider.request_journal_proposal.return_value = proposal
    provider.model_name = "test-model"
    return provider


@pytest.fixture
def event():
    return make_event(transaction_type="custom_adjustment", total_amount="80.00")


async def test_without_provider(account_mapping, event):
    service = EscalationService(None, account_mapping)

    result = await service.escalate(event)

    assert not result.is_relevant
    assert result.confidence == 0.0
    assert result.outcome is ProcessingResult.ESCALATION_FAILED


async def test_accepted_proposal(account_mapping, event):
    proposal = _proposal()
    service = EscalationService(_provider(proposal), account_mapping)

    result = await service.escalate(event)

    assert result.is_relevant
    assert result.method is ClassificationMethod.AI
    assert result.confidence == 0.9
    assert result.proposal == proposal
    assert result.outcome is None


async def test_provider_receives_tenant_chart(account_mapping, event):
    provider = _provider(_proposal())
    service = EscalationService(provider, account_mapping)

    await service.escalate(event)

    _, chart = provider.request_journal_proposal.await_args.args
    assert {"1000", "4900", "5000", "6000"} <= {account.code for account in chart}


async def test_low_confidence_rejected(account_mapping, event):
    service = EscalationService(
        _provider(_proposal(confidence=0.3)),
        account_mapping,
        min_confidence=0.5,
    )

    result = await service.escalate(event)

    assert not result.is_relevant
    assert result.method is ClassificationMethod.AI
    assert result.confidence == 0.3
    assert result.outcome is ProcessingResult.REJECTED_LOW_CONFIDENCE


async def test_confidence_at_floor_accepted(account_mapping, event):
    service = EscalationService(
        _provider(_proposal(confidence=0.5)),
        account_mapping,
        min_confidence=0.5,
    )

    result = await service.escalate(event)

    assert result.is_relevant


async def test_unbalanced_proposal_rejected(account_mapping, event):
    service = EscalationService(
        _provider(_proposal(debit="80.00", credit="75.00")),
        account_mapping,
    )

    result = await service.escalate(event)

    assert not result.is_relevant
    assert result.outcome is ProcessingResult.REJECTED_UNBALANCED_PROPOSAL


async def test_one_sided_proposal_rejected(account_mapping, event):
    one_sided = JournalProposal(
        lines=[ProposedLine(account_code="5000", side="debit", amount=Decimal("80"))],
        confidence=0.9,
    )
    service = EscalationService(_provider(one_sided), account_mapping)

    result = await service.escalate(event)

    assert result.outcome is ProcessingResult.REJECTED_UNBALANCED_PROPOSAL


@pytest.mark.parametrize("account_code", ["7777", "ACCOUNT-CODE-LONGER-THAN-TWENTY"])
async def test_off_chart_account_rejected(account_mapping, event, account_code):
    proposal = JournalProposal(
        lines=[
            ProposedLine(account_code=account_code, side="debit", amount=Decimal("80")),
            ProposedLine(account_code="1000", side="credit", amount=Decimal("80")),
        ],
        confidence=0.9,
    )
    service = EscalationService(_provider(proposal), account_mapping)

    result = await service.escalate(event)

    assert not result.is_relevant
    assert result.method is ClassificationMethod.AI
    assert result.confidence == 0.9
    assert result.outcome is ProcessingResult.REJECTED_UNKNOWN_ACCOUNT
    assert account_code in result.reason


async def test_no_answer(account_mapping, event):
    service = EscalationService(_provider(None), account_mapping)

    result = await service.escalate(event)

    assert result.outcome is ProcessingResult.ESCALATION_FAILED
    assert result.confidence == 0.0


async def test_provider_error_degrades(account_mapping, event):
    provider = _provider()
    provider.request_journal_proposal.side_effect = RuntimeError("boom")
    service = EscalationService(provider, account_mapping)

    result = await service.escalate(event)

    assert result.outcome is ProcessingResult.ESCALATION_FAILED


async def test_timeout_degrades(account_mapping, event):
    async def slow(*_args, **_kwargs):
        await asyncio.sleep(5)

    provider = _provider()
    provider.request_journal_proposal.side_effect = slow
    service = EscalationService(provider, account_mapping, timeout=0.05)

    result = await service.escalate(event)

    assert not result.is_relevant
    assert result.outcome is ProcessingResult.ESCALATION_FAILED
