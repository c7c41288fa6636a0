"""Pytest fixtures for API tests.

The app runs on TestClient's own event loop, so the SQLite schema is
created synchronously in a fresh loop and the engine uses NullPool to
avoid handing connections across loops.
"""

import asyncio
from decimal import Decimal
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from hera.infrastructure.persistence.sqlalchemy import create_engine, create_tables
from hera.presentation.api.app import API_V2_PREFIX, create_app
from hera.presentation.api.dependencies import (
    API_VERSION_HEADER,
    SUPPORTED_API_VERSION,
    get_account_mapping,
    get_jwt_service,
    get_posting_policy,
    get_proposal_provider,
    get_session_maker,
)
from hera_auth import JWTService
from hera_config.settings import Settings
from tests.shared.fixtures.factories import TestOrganizationFactory

TEST_JWT_SECRET = "test-jwt-secret-for-testing-only"


@pytest.fixture
def api_v2_prefix() -> str:
    """Get the API v2 prefix for building URLs."""
    return API_V2_PREFIX


@pytest.fixture
def api_settings() -> Settings:
    """Test API settings with debug enabled."""
    return Settings(
        _env_file=None,
        jwt_secret_key=SecretStr(TEST_JWT_SECRET),
        postgres_password=SecretStr("test-password"),
        api_debug=True,
        api_cors_origins="http://localhost:3000",
    )


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(secret_key=TEST_JWT_SECRET)


@pytest.fixture
def api_session_maker(tmp_path) -> async_sessionmaker[AsyncSession]:
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        poolclass=NullPool,
    )
    # Run in a fresh event loop to avoid conflicts with TestClient's loop
    asyncio.run(create_tables(engine))
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def proposal_provider():
    """Escalation provider used by the app; None disables AI escalation."""
    return None


@pytest.fixture
def app(api_settings, api_session_maker, jwt_service, proposal_provider):
    application = create_app(api_settings)
    application.dependency_overrides.update(
        {
            get_session_maker: lambda: api_session_maker,
            get_account_mapping: AccountMappingTable.default,
            get_posting_policy: lambda: PostingPolicy(
                immediate_threshold=Decimal("1000"),
                batch_threshold=Decimal("500"),
                escalation_timeout=1.0,
            ),
            get_proposal_provider: lambda: proposal_provider,
            get_jwt_service: lambda: jwt_service,
        },
    )
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_headers(jwt_service):
    """Build request headers for a tenant."""

    def _make(
        organization_id: UUID = TestOrganizationFactory.DEFAULT_ID,
        version: str | None = SUPPORTED_API_VERSION,
        token: str | None = None,
    ) -> dict[str, str]:
        headers = {}
        if version is not None:
            headers[API_VERSION_HEADER] = version
        if token is None:
            token = jwt_service.create_access_token("pos-gateway", organization_id)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    return _make


@pytest.fixture
def auth_headers(make_headers) -> dict[str, str]:
    return make_headers()
