"""Journal proposals returned by the external reasoning service."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hera.domain.posting.value_objects.money import check_decimal_places


class ProposedLine(BaseModel):
    """One candidate journal line."""

    model_config = ConfigDict(frozen=True)

    account_code: str = Field(min_length=1)
    account_name: str | None = None
    side: Literal["debit", "credit"]
    amount: Decimal = Field(gt=0)
    description: str | None = None

    @field_validator("amount")
    @classmethod
    def _two_places(cls, v: Decimal) -> Decimal:
        return check_decimal_places(v)


class JournalProposal(BaseModel):
    """Candidate line set plus the service's confidence in it."""

    model_config = ConfigDict(frozen=True)

    lines: list[ProposedLine]
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str | None = None

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (line.amount for line in self.lines if line.side == "debit"),
            start=Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (line.amount for line in self.lines if line.side == "credit"),
            start=Decimal("0"),
        )
