"""Unit test configuration and fixtures.

Unit tests needing a real store run against a SQLite file per test.
"""

from decimal import Decimal

import pytest

from hera.application.context import OrganizationContext
from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from tests.shared.fixtures.database import (  # noqa: F401
    sqlite_engine,
    sqlite_session_maker,
)
from tests.shared.fixtures.factories import TestOrganizationFactory


@pytest.fixture
def organization_context() -> OrganizationContext:
    """Tenant every event in the unit suite belongs to by default."""
    return TestOrganizationFactory.default_context()


@pytest.fixture
def account_mapping() -> AccountMappingTable:
    return AccountMappingTable.default()


@pytest.fixture
def posting_policy() -> PostingPolicy:
    """Default thresholds: immediate above 1000, batch flush at 500."""
    return PostingPolicy(
        immediate_threshold=Decimal("1000"),
        batch_threshold=Decimal("500"),
        min_ai_confidence=0.5,
        escalation_timeout=0.5,
        persistence_timeout=2.0,
    )
