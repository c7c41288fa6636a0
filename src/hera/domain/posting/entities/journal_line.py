"""Journal line entity: one side of a double-entry posting."""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

from hera.domain.posting.value_objects import GLAccount, Money


class JournalLine:
    """An immutable debit or credit against one GL account."""

    def __init__(
        self,
        account: GLAccount,
        debit: Optional[Money] = None,
        credit: Optional[Money] = None,
        description: str = "",
        smart_code: str = "",
        line_id: Optional[UUID] = None,
    ):
        # Validate that exactly one of debit or credit is provided
        if (debit is None) == (credit is None):
            msg = "Line must have exactly one of debit or credit, not both or neither"
            raise ValueError(msg)

        amount = debit or credit
        if amount is None or not amount.is_positive():
            msg = "Journal line amount must be positive"
            raise ValueError(msg)

        self._id = line_id or uuid4()
        self._account = account
        self._debit = debit
        self._credit = credit
        self._description = description
        self._smart_code = smart_code

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def account(self) -> GLAccount:
        return self._account

    @property
    def account_code(self) -> str:
        return self._account.code

    @property
    def account_name(self) -> str:
        return self._account.name

    @property
    def debit_amount(self) -> Optional[Decimal]:
        return self._debit.amount if self._debit else None

    @property
    def credit_amount(self) -> Optional[Decimal]:
        return self._credit.amount if self._credit else None

    @property
    def amount(self) -> Money:
        return self._debit if self._debit is not None else self._credit  # type: ignore[return-value]

    @property
    def currency(self) -> str:
        return self.amount.currency.code

    @property
    def description(self) -> str:
        return self._description

    @property
    def smart_code(self) -> str:
        return self._smart_code

    def is_debit(self) -> bool:
        return self._debit is not None

    def is_credit(self) -> bool:
        return self._credit is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_code": self.account_code,
            "account_name": self.account_name,
            "debit_amount": str(self.debit_amount) if self.is_debit() else None,
            "credit_amount": str(self.credit_amount) if self.is_credit() else None,
            "currency": self.currency,
            "description": self.description,
            "smart_code": self.smart_code,
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, JournalLine):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        if self.is_debit():
            return f"Debit {self.account_code} {self.account_name}: {self._debit}"
        return f"Credit {self.account_code} {self.account_name}: {self._credit}"
