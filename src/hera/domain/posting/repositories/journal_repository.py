"""Journal repository interface.

Only the posting processor writes through this repository.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from hera.domain.posting.entities import JournalEntry


class JournalRepository(ABC):
    """Repository interface for posted journals (header plus lines)."""

    @abstractmethod
    async def add(self, journal: JournalEntry) -> None:
        """Persist header and every line, or nothing at all."""

    @abstractmethod
    async def find_by_id(self, journal_id: UUID) -> Optional[JournalEntry]:
        """Find a journal by ID."""
