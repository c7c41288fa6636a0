"""Value object for monetary amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from hera.domain.posting.value_objects.currency import Currency

# Constants for validation
DECIMAL_PLACES_LIMIT = -2
CENT = Decimal("0.01")
# Largest value a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal("9999999999999.99")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to the minor currency unit."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def check_decimal_places(v: Decimal) -> Decimal:
    decimal_places = v.as_tuple().exponent
    if not isinstance(decimal_places, int):
        msg = "Amount must be a finite number"
        raise ValueError(msg)

    if decimal_places < DECIMAL_PLACES_LIMIT and v != quantize_amount(v):
        msg = "Amount cannot have more than 2 decimal places"
        raise ValueError(msg)

    return v


class Money(BaseModel):
    """Value object representing monetary amounts with currency."""

    amount: Decimal
    currency: Currency = Currency.default()

    model_config = ConfigDict(frozen=True)

    def __init__(
        self,
        amount: Decimal | float | str | None = None,
        currency: Currency | str | None = None,
        **data: Any,
    ):
        if currency is None and "currency" not in data:
            currency = Currency.default()
        super().__init__(amount=amount, currency=currency, **data)

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> Decimal:
        if not isinstance(v, Decimal):
            v = Decimal(str(v))
        return check_decimal_places(v)

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> Currency:
        if isinstance(v, Currency):
            return v
        if isinstance(v, str):
            return Currency(v)
        msg = f"Currency must be Currency instance or string, got {type(v)}"
        raise TypeError(msg)

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    def is_positive(self) -> bool:
        return self.amount > Decimal(0)
