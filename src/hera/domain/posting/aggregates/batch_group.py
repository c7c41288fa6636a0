"""Batch group aggregate: accumulator of small transactions of one key."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from hera.domain.posting.exceptions import BatchCurrencyMismatchError


class BatchGroup:
    """Pending members of ``(organization_id, transaction_type, date)``.

    Members keep arrival order and share the base currency the group was
    opened in. The group is consumed once its running total reaches the
    batch threshold (or when swept), after which a new group starts for
    later transactions of the same key.
    """

    def __init__(  # NOQA: PLR0913
        self,
        organization_id: UUID,
        transaction_type: str,
        batch_date: date,
        currency: str,
        source_smart_code: str,
        group_id: Optional[UUID] = None,
        member_transaction_ids: Optional[list[UUID]] = None,
        running_total: Decimal = Decimal("0"),
    ):
        self._id = group_id or uuid4()
        self._organization_id = organization_id
        self._transaction_type = transaction_type
        self._batch_date = batch_date
        self._currency = currency
        self._source_smart_code = source_smart_code
        self._member_transaction_ids = list(member_transaction_ids or [])
        self._running_total = running_total

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def organization_id(self) -> UUID:
        return self._organization_id

    @property
    def transaction_type(self) -> str:
        return self._transaction_type

    @property
    def batch_date(self) -> date:
        return self._batch_date

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def source_smart_code(self) -> str:
        """Smart code of the first member, used to derive the domain."""
        return self._source_smart_code

    @property
    def member_transaction_ids(self) -> list[UUID]:
        return list(self._member_transaction_ids)

    @property
    def member_count(self) -> int:
        return len(self._member_transaction_ids)

    @property
    def running_total(self) -> Decimal:
        return self._running_total

    def add_member(
        self,
        transaction_id: UUID,
        amount: Decimal,
        currency: str,
    ) -> None:
        if currency != self._currency:
            raise BatchCurrencyMismatchError(self._currency, currency)
        if transaction_id in self._member_transaction_ids:
            return
        self._member_transaction_ids.append(transaction_id)
        self._running_total += amount

    def has_reached(self, threshold: Decimal) -> bool:
        return self._running_total >= threshold

    def __repr__(self) -> str:
        return (
            f"BatchGroup(org={self._organization_id}, "
            f"type={self._transaction_type!r}, date={self._batch_date}, "
            f"members={self.member_count}, total={self._running_total})"
        )
