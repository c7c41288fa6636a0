"""Fixtures for application-layer tests."""

import pytest

from tests.shared.fixtures.pipeline import PipelineHarness


@pytest.fixture
def pipeline(sqlite_session_maker, account_mapping, posting_policy) -> PipelineHarness:
    """Pipeline on a fresh SQLite store, AI escalation disabled."""
    return PipelineHarness(sqlite_session_maker, account_mapping, posting_policy)
