"""Batch router: end-of-day flush of open batch groups."""

import logging
from typing import Optional

from fastapi import APIRouter, Request

from hera.application.commands import SweepBatchGroupsCommand
from hera.presentation.api.dependencies import AccountMapping, Policy, RepoFactory
from hera.presentation.api.schemas import (
    ErrorResponse,
    ResponseMetadata,
    SweepData,
    SweepRequest,
    SweepResponse,
    SweptGroupResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sweep",
    summary="Flush open batch groups",
    responses={
        422: {"model": ErrorResponse, "description": "A summary could not be posted"},
    },
)
async def sweep_batch_groups(
    request: Request,
    factory: RepoFactory,
    account_mapping: AccountMapping,
    policy: Policy,
    body: Optional[SweepRequest] = None,
) -> SweepResponse:
    """
    Post one summary journal per open batch group of the tenant.

    Groups are flushed whatever their running total. With ``before`` only
    groups dated strictly before the cut-off are flushed, so the current
    day keeps collecting.
    """
    before = body.before if body else None
    command = SweepBatchGroupsCommand.from_factory(factory, account_mapping, policy)

    try:
        results = await command.execute(
            factory.organization_context.organization_id,
            before=before,
        )
        await factory.session.commit()
    except Exception:
        await factory.session.rollback()
        raise
    finally:
        await factory.flush_audit_log()

    logger.info("Sweep flushed %d group(s) (before=%s)", len(results), before)
    return SweepResponse(
        data=SweepData(
            flushed_groups=[SweptGroupResponse.from_result(r) for r in results],
        ),
        metadata=ResponseMetadata.from_request(request),
    )
