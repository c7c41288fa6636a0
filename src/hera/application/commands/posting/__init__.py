"""Posting commands."""

from hera.application.commands.posting.ingest_finance_event_command import (
    IngestFinanceEventCommand,
)
from hera.application.commands.posting.sweep_batch_groups_command import (
    SweepBatchGroupsCommand,
    SweepResult,
)

__all__ = [
    "IngestFinanceEventCommand",
    "SweepBatchGroupsCommand",
    "SweepResult",
]
