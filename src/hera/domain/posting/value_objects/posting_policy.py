"""Tunable thresholds of the posting pipeline."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PostingPolicy:
    """Global posting policy, built from settings at startup."""

    immediate_threshold: Decimal = Decimal("1000")
    batch_threshold: Decimal = Decimal("500")
    min_ai_confidence: float = 0.5
    escalation_timeout: float = 5.0
    persistence_timeout: float = 5.0
