"""Universal Finance Event: the canonical input of the posting engine.

The free-form ``business_context`` and ``metadata`` objects of incoming
payloads are modelled as closed variants. Keys a variant does not know
are kept in its ``extensions`` map so newer producers are not rejected.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from hera.domain.posting.value_objects.currency import normalize_currency_code
from hera.domain.posting.value_objects.money import (
    MAX_AMOUNT,
    check_decimal_places,
    quantize_amount,
)
from hera.domain.posting.value_objects.smart_code import (
    domain_of,
    is_valid_smart_code,
)
from hera.domain.shared.exceptions import FieldError, ValidationError

_TYPE_VERSION_SEGMENT = "v"
_TYPE_PREFIXES = frozenset({"tx", "txn"})

# Transaction types of engine-written rows in the universal transaction store
JOURNAL_TRANSACTION_TYPE = "journal_entry"
AUDIT_TRANSACTION_TYPE = "gl_audit_log"
RESERVED_TRANSACTION_TYPES = frozenset(
    {JOURNAL_TRANSACTION_TYPE, AUDIT_TRANSACTION_TYPE},
)


def _is_version_segment(part: str) -> bool:
    return part.startswith(_TYPE_VERSION_SEGMENT) and part[1:].isdigit()


def normalize_transaction_type(raw: str) -> str:
    """Reduce a transaction type to its kind.

    ``"Sale"`` -> ``"sale"``, ``"TX.FINANCE.EXPENSE.V1"`` -> ``"expense"``,
    ``"pos-eod"`` -> ``"pos_eod"``.
    """
    value = raw.strip().lower().replace("-", "_").replace(" ", "_")
    if "." not in value:
        return value

    parts = [p for p in value.split(".") if p]
    while parts and _is_version_segment(parts[-1]):
        parts.pop()
    parts = [p for p in parts if p not in _TYPE_PREFIXES]
    return parts[-1] if parts else value


class _ExtensibleModel(BaseModel):
    """Base for closed variants that park unknown keys in ``extensions``."""

    model_config = ConfigDict(frozen=True)

    extensions: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extensions(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        known = set(cls.model_fields)
        unknown = {k: v for k, v in data.items() if k not in known}
        if not unknown:
            return data

        cleaned = {k: v for k, v in data.items() if k in known}
        cleaned["extensions"] = {**(data.get("extensions") or {}), **unknown}
        return cleaned


class Channel(str, Enum):
    """Where an event entered the system."""

    MCP = "MCP"
    POS = "POS"
    BANK = "BANK"
    MANUAL = "MANUAL"
    IMPORT = "IMPORT"


class PosTotals(BaseModel):
    """End-of-day register totals."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    gross_sales: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    vat: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    tips: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    fees: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    cash_collected: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    card_settlement: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)

    @field_validator("*", mode="after")
    @classmethod
    def _two_places(cls, v: Decimal) -> Decimal:
        return check_decimal_places(v)


class _ContextBase(_ExtensibleModel):
    note: str | None = None


class McpContext(_ContextBase):
    channel: Literal["MCP"]
    agent_id: str | None = None


class PosContext(_ContextBase):
    channel: Literal["POS"]
    register_id: str | None = None
    shift_id: str | None = None
    totals: PosTotals | None = None


class BankContext(_ContextBase):
    channel: Literal["BANK"]
    bank_reference: str | None = None
    statement_id: str | None = None


class ManualContext(_ContextBase):
    channel: Literal["MANUAL"]
    entered_by: str | None = None


class ImportContext(_ContextBase):
    channel: Literal["IMPORT"]
    import_batch_ref: str | None = None
    file_name: str | None = None


BusinessContext = Annotated[
    Union[McpContext, PosContext, BankContext, ManualContext, ImportContext],
    Field(discriminator="channel"),
]


class IngestMetadata(_ExtensibleModel):
    """Producer-side facts about an event."""

    ingest_source: str | None = None
    original_ref: str | None = None
    immediate_posting: bool = False
    no_financial_impact: bool = False


class UniversalFinanceEvent(BaseModel):
    """A business event with potential general-ledger impact."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    organization_id: UUID
    transaction_type: str = Field(min_length=1, max_length=100)
    smart_code: str = Field(max_length=100)
    transaction_code: str | None = Field(default=None, max_length=100)
    transaction_date: date
    total_amount: Decimal = Field(ge=0, le=MAX_AMOUNT)
    transaction_currency_code: str
    base_currency_code: str
    exchange_rate: Decimal = Field(default=Decimal("1.0"), gt=0)
    business_context: BusinessContext = Field(
        default_factory=lambda: ManualContext(channel="MANUAL"),
    )
    metadata: IngestMetadata = Field(default_factory=IngestMetadata)
    lines: list[Any] = Field(default_factory=list)

    @field_validator("transaction_type")
    @classmethod
    def _reject_reserved_type(cls, v: str) -> str:
        if v.strip().lower() in RESERVED_TRANSACTION_TYPES:
            msg = f"'{v}' is reserved for engine-written records"
            raise ValueError(msg)
        return v

    @field_validator("smart_code")
    @classmethod
    def _validate_smart_code(cls, v: str) -> str:
        if not is_valid_smart_code(v):
            msg = "Smart code must look like HERA.<DOMAIN>.<SEGMENTS>.V<n>"
            raise ValueError(msg)
        return v

    @field_validator("transaction_date", mode="before")
    @classmethod
    def _accept_timestamps(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
        return v

    @field_validator("total_amount")
    @classmethod
    def _validate_amount(cls, v: Decimal) -> Decimal:
        return check_decimal_places(v)

    @field_validator("transaction_currency_code", "base_currency_code")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return normalize_currency_code(v)

    @field_validator("business_context", mode="before")
    @classmethod
    def _normalize_channel(cls, v: Any) -> Any:
        if isinstance(v, dict) and isinstance(v.get("channel"), str):
            return {**v, "channel": v["channel"].upper()}
        return v

    @field_validator("lines")
    @classmethod
    def _reject_lines(cls, v: list[Any]) -> list[Any]:
        if v:
            msg = "lines must be empty; journal lines are produced by the engine"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _base_amount_fits(self) -> UniversalFinanceEvent:
        if self.base_amount > MAX_AMOUNT:
            msg = f"Amount in {self.base_currency_code} exceeds {MAX_AMOUNT}"
            raise ValueError(msg)
        return self

    @classmethod
    def parse(cls, raw: Any) -> UniversalFinanceEvent:
        """Validate a decoded payload, raising a domain ValidationError."""
        try:
            return cls.model_validate(raw)
        except PydanticValidationError as e:
            field_errors = [
                FieldError(
                    field=".".join(str(p) for p in err["loc"]) or "body",
                    message=err["msg"],
                )
                for err in e.errors()
            ]
            raise ValidationError(
                "Finance event failed validation",
                field_errors=field_errors,
            ) from e

    @property
    def kind(self) -> str:
        return normalize_transaction_type(self.transaction_type)

    @property
    def channel(self) -> Channel:
        return Channel(self.business_context.channel)

    @property
    def domain(self) -> str:
        return domain_of(self.smart_code)

    @property
    def base_amount(self) -> Decimal:
        """Total expressed in the organization's base currency."""
        if self.transaction_currency_code == self.base_currency_code:
            return self.total_amount
        return quantize_amount(self.total_amount * self.exchange_rate)

    @property
    def idempotency_key(self) -> str | None:
        """Key identifying retries of the same external event."""
        if not self.metadata.original_ref:
            return None
        return (
            f"{self.organization_id}:{self.smart_code}:"
            f"{self.metadata.original_ref}:{self.transaction_date.isoformat()}"
        )

    def pos_totals(self) -> PosTotals | None:
        if isinstance(self.business_context, PosContext):
            return self.business_context.totals
        return None
