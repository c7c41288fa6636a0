"""Application commands - state-changing use cases."""

from hera.application.commands.posting import (
    IngestFinanceEventCommand,
    SweepBatchGroupsCommand,
)

__all__ = [
    "IngestFinanceEventCommand",
    "SweepBatchGroupsCommand",
]
