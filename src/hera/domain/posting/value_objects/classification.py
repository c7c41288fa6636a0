"""Relevance classification results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from hera.domain.posting.value_objects.journal_proposal import JournalProposal
from hera.domain.posting.value_objects.processing_result import ProcessingResult


class ClassificationMethod(str, Enum):
    RULE = "rule"
    AI = "ai"


class ClassificationResult(BaseModel):
    """Whether an event needs a journal, and how sure we are."""

    model_config = ConfigDict(frozen=True)

    is_relevant: bool
    confidence: float = Field(ge=0.0, le=1.0)
    method: ClassificationMethod
    reason: str
    # Set when the event is not relevant
    outcome: ProcessingResult | None = None
    # Accepted journal proposal (AI path only)
    proposal: JournalProposal | None = None

    @classmethod
    def relevant_by_rule(cls, reason: str) -> "ClassificationResult":
        return cls(
            is_relevant=True,
            confidence=1.0,
            method=ClassificationMethod.RULE,
            reason=reason,
        )

    @classmethod
    def irrelevant_by_rule(cls, reason: str) -> "ClassificationResult":
        return cls(
            is_relevant=False,
            confidence=1.0,
            method=ClassificationMethod.RULE,
            reason=reason,
            outcome=ProcessingResult.SKIPPED_NOT_RELEVANT,
        )

    def to_audit(self) -> dict:
        return {
            "is_relevant": self.is_relevant,
            "confidence": self.confidence,
            "method": self.method.value,
            "reason": self.reason,
        }
