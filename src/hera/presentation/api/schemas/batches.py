"""Batch sweep schemas."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from hera.application.commands.posting import SweepResult
from hera.presentation.api.schemas.common import ResponseMetadata
from hera.presentation.api.schemas.transactions import GLLineResponse


class SweepRequest(BaseModel):
    """Flush open batch groups dated strictly before ``before``.

    Without ``before`` every open group of the tenant is flushed.
    """

    before: Optional[date] = Field(None, description="Exclusive cut-off date")


class SweptGroupResponse(BaseModel):
    batch_group_id: UUID
    transaction_type: str
    batch_date: date
    member_count: int
    total_amount: Decimal
    journal_entry_id: UUID
    posting_period: str
    gl_lines: list[GLLineResponse]

    @classmethod
    def from_result(cls, result: SweepResult) -> "SweptGroupResponse":
        return cls(
            batch_group_id=result.batch_group_id,
            transaction_type=result.transaction_type,
            batch_date=result.batch_date,
            member_count=result.member_count,
            total_amount=result.total_amount,
            journal_entry_id=result.journal_entry_id,
            posting_period=result.posting_period,
            gl_lines=GLLineResponse.from_dtos(result.gl_lines),
        )


class SweepData(BaseModel):
    flushed_groups: list[SweptGroupResponse] = Field(default_factory=list)


class SweepResponse(BaseModel):
    success: bool = True
    data: SweepData
    metadata: ResponseMetadata
