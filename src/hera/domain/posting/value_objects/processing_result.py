"""Outcome codes recorded for every processing attempt."""

from enum import Enum


class ProcessingResult(str, Enum):
    """What happened to one finance event (or one sweep)."""

    POSTED = "posted"
    BATCHED = "batched"
    BATCH_POSTED = "batch_posted"
    SKIPPED_NOT_RELEVANT = "skipped_not_relevant"
    REJECTED_LOW_CONFIDENCE = "rejected_low_confidence"
    REJECTED_UNBALANCED_PROPOSAL = "rejected_unbalanced_proposal"
    REJECTED_UNKNOWN_ACCOUNT = "rejected_unknown_account"
    ESCALATION_FAILED = "escalation_failed"
    NOT_BUILDABLE = "not_buildable"
    VALIDATION_FAILED = "validation_failed"
    ACCESS_DENIED = "access_denied"
    POSTING_FAILED = "posting_failed"
    DUPLICATE_REPLAYED = "duplicate_replayed"

    @property
    def is_failure(self) -> bool:
        return self in {
            ProcessingResult.VALIDATION_FAILED,
            ProcessingResult.ACCESS_DENIED,
            ProcessingResult.POSTING_FAILED,
        }


class ProcessingMode(str, Enum):
    """How the journal for an event is (or is not) produced."""

    IMMEDIATE = "immediate"
    BATCHED = "batched"
    SKIPPED = "skipped"
