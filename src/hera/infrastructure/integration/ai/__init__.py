"""AI-backed collaborators."""

from hera.infrastructure.integration.ai.ollama_journal_proposal_provider import (
    OllamaJournalProposalProvider,
)

__all__ = ["OllamaJournalProposalProvider"]
