"""Transaction router: finance event ingestion and reconciliation lookup."""

import json
import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request, status

from hera.application.commands import IngestFinanceEventCommand
from hera.application.queries import GetTransactionJournalQuery
from hera.domain.shared.exceptions import ErrorCode, ValidationError
from hera.presentation.api.dependencies import (
    AccountMapping,
    Policy,
    ProposalProvider,
    RepoFactory,
)
from hera.presentation.api.schemas import (
    ErrorResponse,
    PostTransactionData,
    PostTransactionResponse,
    ResponseMetadata,
    TransactionJournalData,
    TransactionJournalResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_event(request: Request) -> Any:
    """Decode the request body, keeping amounts as exact decimals."""
    body = await request.body()
    try:
        payload = json.loads(body, parse_float=Decimal)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(
            "Request body is not valid JSON",
            code=ErrorCode.INVALID_JSON,
        ) from e

    if isinstance(payload, dict) and isinstance(payload.get("smart_code"), str):
        request.state.smart_code = payload["smart_code"]
    return payload


@router.post(
    "/post",
    status_code=status.HTTP_200_OK,
    summary="Post a universal finance event",
    responses={
        200: {"description": "Event accepted (posted, batched or skipped)"},
        400: {"model": ErrorResponse, "description": "Invalid JSON or event"},
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        403: {"model": ErrorResponse, "description": "Organization mismatch"},
        422: {"model": ErrorResponse, "description": "Journal could not be posted"},
    },
)
async def post_transaction(
    request: Request,
    factory: RepoFactory,
    account_mapping: AccountMapping,
    policy: Policy,
    proposal_provider: ProposalProvider,
) -> PostTransactionResponse:
    """
    Ingest one Universal Finance Event and run the auto-posting pipeline.

    The body is the event itself. Journal lines are produced by the engine;
    a non-empty ``lines`` field is rejected.

    **Outcomes (``processing_result``):**
    - `posted` - journal posted immediately
    - `batched` - added to the batch group of its type and date
    - `batch_posted` - this event pushed its group over the batch threshold
    - `skipped_not_relevant`, `not_buildable`, `rejected_low_confidence`,
      `rejected_unbalanced_proposal`, `rejected_unknown_account`,
      `escalation_failed` - accepted as a business record, no journal

    Retrying an event with the same ``metadata.original_ref`` returns the
    stored outcome with ``replayed=true``.
    """
    raw_event = await _read_event(request)
    command = IngestFinanceEventCommand.from_factory(
        factory,
        account_mapping,
        policy,
        proposal_provider,
    )

    try:
        outcome = await command.execute(raw_event, factory.organization_context)
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        # Let the global exception handler process domain exceptions
        raise
    finally:
        await factory.flush_audit_log()

    logger.info(
        "Event %s processed: %s (%s)",
        outcome.transaction_id,
        outcome.processing_result.value,
        outcome.processing_mode.value,
    )
    return PostTransactionResponse(
        data=PostTransactionData.from_outcome(outcome),
        metadata=ResponseMetadata.from_request(request),
    )


@router.get(
    "/{transaction_id}/journal",
    summary="Get the journal posted for a source transaction",
    responses={
        404: {"model": ErrorResponse, "description": "Transaction not found"},
    },
)
async def get_transaction_journal(
    request: Request,
    transaction_id: UUID,
    factory: RepoFactory,
) -> TransactionJournalResponse:
    """
    Reconciliation lookup for one source transaction.

    Batched transactions point at their batch summary journal. The audit
    trail lists every processing attempt recorded for the transaction.
    """
    query = GetTransactionJournalQuery.from_factory(factory)
    result = await query.execute(transaction_id)

    request.state.smart_code = result.smart_code
    return TransactionJournalResponse(
        data=TransactionJournalData.from_dto(result),
        metadata=ResponseMetadata.from_request(request),
    )
