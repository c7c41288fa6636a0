"""Integration test configuration and fixtures.

Integration tests run the posting pipeline against PostgreSQL in a
Testcontainers instance, where row locks and ``ON CONFLICT`` behave as in
production.
"""

from decimal import Decimal

import pytest

from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from tests.shared.fixtures.database import (  # noqa: F401
    postgres_container,
    postgres_engine,
    postgres_session_maker,
    postgres_url,
)
from tests.shared.fixtures.pipeline import PipelineHarness


@pytest.fixture
def posting_policy() -> PostingPolicy:
    return PostingPolicy(
        immediate_threshold=Decimal("1000"),
        batch_threshold=Decimal("500"),
        escalation_timeout=0.5,
        persistence_timeout=5.0,
    )


@pytest.fixture
def harness(postgres_session_maker, posting_policy) -> PipelineHarness:
    """Pipeline driver bound to the container database."""
    return PipelineHarness(
        postgres_session_maker,
        AccountMappingTable.default(),
        posting_policy,
    )
