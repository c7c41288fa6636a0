"""Shared pytest fixtures for all test suites."""

from tests.shared.fixtures.database import (
    postgres_container,
    postgres_engine,
    postgres_session_maker,
    postgres_url,
    sqlite_engine,
    sqlite_session_maker,
)
from tests.shared.fixtures.factories import (
    TestOrganizationFactory,
    event_payload,
    make_event,
    pos_eod_payload,
)

__all__ = [
    "postgres_container",
    "postgres_engine",
    "postgres_session_maker",
    "postgres_url",
    "sqlite_engine",
    "sqlite_session_maker",
    "TestOrganizationFactory",
    "event_payload",
    "make_event",
    "pos_eod_payload",
]
