"""Versioned transaction-kind to GL account mapping.

The table is loaded once at process start and injected into the journal
builder. Tenants may override individual kinds without touching the
defaults used by everybody else.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

POS_EOD_KIND = "pos_eod"


class GLAccount(BaseModel):
    """An account of the general ledger."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)


class PostingRule(BaseModel):
    """Debit/credit orientation for one transaction kind."""

    model_config = ConfigDict(frozen=True)

    debit: GLAccount
    credit: GLAccount
    description: str


class PosEodAccounts(BaseModel):
    """Accounts used to expand a POS end-of-day summary."""

    model_config = ConfigDict(frozen=True)

    cash: GLAccount
    card_clearing: GLAccount
    card_fees: GLAccount
    sales: GLAccount
    vat: GLAccount
    tips: GLAccount

    def accounts(self) -> list[GLAccount]:
        return [
            self.cash,
            self.card_clearing,
            self.card_fees,
            self.sales,
            self.vat,
            self.tips,
        ]


# Chart of accounts shared by the default rules
CASH_BANK = GLAccount(code="1000", name="Cash - Bank Account")
BANK_CLEARING = GLAccount(code="1010", name="Bank Clearing")
UNDEPOSITED_FUNDS = GLAccount(code="1050", name="Undeposited Funds")
CARD_CLEARING = GLAccount(code="1100", name="Card Clearing")
ACCOUNTS_RECEIVABLE = GLAccount(code="1200", name="Accounts Receivable")
INVENTORY = GLAccount(code="1300", name="Inventory")
ACCOUNTS_PAYABLE = GLAccount(code="2000", name="Accounts Payable")
TIPS_PAYABLE = GLAccount(code="2150", name="Tips Payable")
VAT_PAYABLE = GLAccount(code="2300", name="VAT Payable")
SALES_REVENUE = GLAccount(code="4000", name="Sales Revenue")
SERVICE_REVENUE = GLAccount(code="4100", name="Service Revenue")
MISC_INCOME = GLAccount(code="4900", name="Miscellaneous Income")
COST_OF_GOODS_SOLD = GLAccount(code="5000", name="Cost of Goods Sold")
BANK_CHARGES = GLAccount(code="5800", name="Bank Charges")
CARD_FEES = GLAccount(code="5810", name="Card Processing Fees")
OPERATING_EXPENSE = GLAccount(code="6000", name="Operating Expense")


def _rule(debit: GLAccount, credit: GLAccount, description: str) -> PostingRule:
    return PostingRule(debit=debit, credit=credit, description=description)


DEFAULT_RULES: dict[str, PostingRule] = {
    "sale": _rule(ACCOUNTS_RECEIVABLE, SALES_REVENUE, "Sales transaction"),
    "service": _rule(ACCOUNTS_RECEIVABLE, SERVICE_REVENUE, "Service revenue"),
    "purchase": _rule(INVENTORY, ACCOUNTS_PAYABLE, "Purchase on account"),
    "payment": _rule(ACCOUNTS_PAYABLE, CASH_BANK, "Vendor payment"),
    "receipt": _rule(CASH_BANK, ACCOUNTS_RECEIVABLE, "Customer receipt"),
    "expense": _rule(OPERATING_EXPENSE, CASH_BANK, "Operating expense"),
    "bank_fee": _rule(BANK_CHARGES, CASH_BANK, "Bank charges"),
    "bank_transfer": _rule(BANK_CLEARING, CASH_BANK, "Bank transfer"),
    "bank_deposit": _rule(CASH_BANK, UNDEPOSITED_FUNDS, "Bank deposit"),
    "refund": _rule(SALES_REVENUE, CASH_BANK, "Customer refund"),
}

DEFAULT_POS_EOD = PosEodAccounts(
    cash=CASH_BANK,
    card_clearing=CARD_CLEARING,
    card_fees=CARD_FEES,
    sales=SALES_REVENUE,
    vat=VAT_PAYABLE,
    tips=TIPS_PAYABLE,
)

# Accounts valid as targets of externally proposed journals
DEFAULT_EXTRA_ACCOUNTS: tuple[GLAccount, ...] = (
    MISC_INCOME,
    COST_OF_GOODS_SOLD,
)


class AccountMappingTable(BaseModel):
    """Immutable mapping of transaction kinds to posting rules."""

    model_config = ConfigDict(frozen=True)

    version: str
    rules: dict[str, PostingRule]
    pos_eod: PosEodAccounts = DEFAULT_POS_EOD
    extra_accounts: tuple[GLAccount, ...] = ()
    tenant_overrides: dict[UUID, dict[str, PostingRule]] = Field(default_factory=dict)

    @classmethod
    def default(cls) -> AccountMappingTable:
        return cls(
            version="2024.1",
            rules=DEFAULT_RULES,
            extra_accounts=DEFAULT_EXTRA_ACCOUNTS,
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> AccountMappingTable:
        """Load a table from a JSON document with the model's shape."""
        data: dict[str, Any] = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)

    def rule_for(self, organization_id: UUID, kind: str) -> PostingRule | None:
        overrides = self.tenant_overrides.get(organization_id, {})
        return overrides.get(kind) or self.rules.get(kind)

    def recognizes(self, organization_id: UUID, kind: str) -> bool:
        if kind == POS_EOD_KIND:
            return True
        return self.rule_for(organization_id, kind) is not None

    def chart(self, organization_id: UUID) -> dict[str, GLAccount]:
        """All accounts reachable for a tenant, keyed by account code."""
        accounts: list[GLAccount] = [*self.pos_eod.accounts(), *self.extra_accounts]
        rules = {**self.rules, **self.tenant_overrides.get(organization_id, {})}
        for rule in rules.values():
            accounts.extend((rule.debit, rule.credit))
        return {account.code: account for account in accounts}
