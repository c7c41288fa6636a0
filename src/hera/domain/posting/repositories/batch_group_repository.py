"""Batch group repository interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from uuid import UUID

from hera.domain.posting.aggregates import BatchGroup


class BatchGroupRepository(ABC):
    """Repository interface for open batch groups.

    Implementations must make ``add_member`` atomic per key: the returned
    group stays locked until the surrounding transaction ends, so the
    caller's threshold check and flush cannot race another request.
    """

    @abstractmethod
    async def add_member(  # NOQA: PLR0913
        self,
        transaction_type: str,
        batch_date: date,
        currency: str,
        source_smart_code: str,
        transaction_id: UUID,
        amount: Decimal,
    ) -> BatchGroup:
        """Find-or-create the group for the key and append one member.

        Raises ``BatchCurrencyMismatchError`` without changing the group when
        ``currency`` differs from the currency the group was opened in.
        """

    @abstractmethod
    async def find_open(self, before: date | None = None) -> list[BatchGroup]:
        """Lock and return open groups, optionally only those dated before."""

    @abstractmethod
    async def delete(self, group: BatchGroup) -> None:
        """Discard a consumed group."""
