"""Posting domain exceptions."""

from decimal import Decimal
from typing import Any

from hera.domain.shared.exceptions import DomainException, ErrorCode


class PostingError(DomainException):
    """Raised when a journal cannot be posted.

    The request is rolled back; callers may retry the same event.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PERSISTENCE_FAILED,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class UnbalancedJournalError(PostingError):
    """Raised when debits and credits of a journal differ."""

    def __init__(
        self,
        imbalances: dict[str, Decimal],
        attempted_lines: list[dict[str, Any]] | None = None,
    ):
        summary = ", ".join(f"{cur} {diff:+.2f}" for cur, diff in imbalances.items())
        message = (
            f"Journal does not balance (debits - credits: {summary})"
            if imbalances
            else "Journal has no lines"
        )
        super().__init__(
            message,
            ErrorCode.UNBALANCED_JOURNAL,
            {
                "imbalances": {cur: str(diff) for cur, diff in imbalances.items()},
                "attempted_lines": attempted_lines or [],
            },
        )
        self.imbalances = imbalances


class PersistenceTimeoutError(PostingError):
    """Raised when the store did not answer in time."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Journal persistence timed out after {timeout:.1f}s",
            ErrorCode.PERSISTENCE_TIMEOUT,
            {"timeout_seconds": timeout},
        )


class BatchCurrencyMismatchError(DomainException):
    """Raised when a member's base currency differs from its batch group's."""

    def __init__(self, group_currency: str, currency: str):
        super().__init__(
            f"Batch group is kept in {group_currency}, member is in {currency}",
            ErrorCode.PROCESSING_FAILED,
            {"group_currency": group_currency, "currency": currency},
        )
        self.group_currency = group_currency
        self.currency = currency
