"""Currency value object for representing monetary currencies."""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# ISO 4217 codes accepted on finance events. Only currencies with two minor
# digits are listed since amounts are limited to two decimal places.
SUPPORTED_CURRENCIES: set[str] = {
    "AED",
    "SAR",
    "QAR",
    "EGP",
    "EUR",
    "USD",
    "GBP",
    "CHF",
    "CAD",
    "AUD",
    "SEK",
    "NOK",
    "DKK",
    "PLN",
    "CZK",
    "CNY",
    "INR",
    "PKR",
    "SGD",
    "HKD",
    "ZAR",
    "BRL",
    "MXN",
}

DEFAULT_CURRENCY = "AED"


class Currency(BaseModel):
    """Value object representing a monetary currency."""

    code: str

    model_config = ConfigDict(
        frozen=True,  # Immutable
        str_strip_whitespace=True,  # Auto-strip whitespace
    )

    # overriding pydantic init to allow positional arguments Currency("AED")
    def __init__(self, code: str | None = None, **data: Any):
        if "code" not in data:
            data["code"] = code
        super().__init__(**data)

    @field_validator("code")
    @classmethod
    def validate_and_normalize_code(cls, v: Any) -> str:
        return normalize_currency_code(v)

    @classmethod
    def default(cls) -> "Currency":
        return cls(DEFAULT_CURRENCY)

    def __str__(self) -> str:
        return self.code

    def __hash__(self) -> int:
        return hash(self.code)


def normalize_currency_code(v: Any) -> str:
    """Uppercase and check a currency code against the supported set."""
    if not v or len(str(v).strip()) == 0:
        msg = "Currency code cannot be empty"
        raise ValueError(msg)

    normalized_code = str(v).upper().strip()

    if len(normalized_code) != 3 or not normalized_code.isalpha():
        msg = f"Currency code must be 3 letters: {normalized_code}"
        raise ValueError(msg)

    if normalized_code not in SUPPORTED_CURRENCIES:
        msg = f"Unsupported currency code: {normalized_code}"
        raise ValueError(msg)

    return normalized_code
