"""Posting processor: the only writer of journal headers and lines."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from hera.domain.posting.entities import JournalEntry, JournalLine
from hera.domain.posting.exceptions import (
    PersistenceTimeoutError,
    PostingError,
    UnbalancedJournalError,
)
from hera.domain.posting.repositories import JournalRepository
from hera.domain.shared.exceptions import ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingResult:
    """A journal that is now part of the ledger."""

    journal: JournalEntry

    @property
    def journal_entry_id(self) -> UUID:
        return self.journal.id

    @property
    def posting_period(self) -> str:
        return self.journal.posting_period

    @property
    def lines(self) -> tuple[JournalLine, ...]:
        return self.journal.lines


class PostingProcessor:
    """Validates and persists journals.

    The balance check runs for every journal regardless of origin. The
    store call is bounded by ``timeout``; there is no internal retry.
    """

    def __init__(self, journal_repository: JournalRepository, timeout: float = 5.0):
        self._journal_repo = journal_repository
        self._timeout = timeout

    async def post(self, journal: JournalEntry) -> PostingResult:
        try:
            journal.validate_balance()
        except UnbalancedJournalError as e:
            logger.warning(
                "Refusing to post unbalanced journal %s (%s): %s",
                journal.id,
                journal.smart_code,
                e.message,
            )
            raise

        try:
            await asyncio.wait_for(self._journal_repo.add(journal), self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                "Persisting journal %s timed out after %.1fs",
                journal.id,
                self._timeout,
            )
            raise PersistenceTimeoutError(self._timeout) from e
        except PostingError:
            raise
        except Exception as e:
            logger.error(
                "Persisting journal %s failed: %s (type: %s)",
                journal.id,
                str(e) or repr(e),
                type(e).__name__,
            )
            raise PostingError(
                "Journal could not be persisted",
                ErrorCode.PERSISTENCE_FAILED,
                {"error_type": type(e).__name__},
            ) from e

        logger.info(
            "Posted journal %s (%s, %d lines, period %s, method %s)",
            journal.id,
            journal.smart_code,
            len(journal.lines),
            journal.posting_period,
            journal.method.value,
        )
        return PostingResult(journal=journal)
