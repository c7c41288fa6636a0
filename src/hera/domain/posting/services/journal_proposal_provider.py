"""Journal proposal provider interface."""

from abc import ABC, abstractmethod
from typing import Optional

from hera.domain.posting.value_objects import (
    GLAccount,
    JournalProposal,
    UniversalFinanceEvent,
)


class JournalProposalProvider(ABC):
    """Abstract interface for the external journal reasoning service."""

    @abstractmethod
    async def request_journal_proposal(
        self,
        event: UniversalFinanceEvent,
        chart_of_accounts: list[GLAccount],
    ) -> Optional[JournalProposal]:
        """
        Ask the service to propose journal lines for an event.

        Implementations should handle errors gracefully and return None
        if the service is unavailable or returns an invalid response.
        The proposal is not trusted: balance and confidence are checked
        by the caller.

        Parameters
        ----------
        event
            The finance event no posting rule could handle
        chart_of_accounts
            Accounts the service may post to

        Returns
        -------
        JournalProposal with candidate lines and a confidence score,
        or None if the service could not make a suggestion.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """
        Name/identifier of the model being used.

        Stored with every AI-built journal to track which model made
        each proposal.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the provider is healthy and available.

        Returns
        -------
        True if the provider is ready to process requests, False otherwise.
        """
