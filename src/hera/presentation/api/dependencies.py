"""FastAPI dependency injection for the HERA API.

Provides dependencies for:
- Database sessions
- API version and bearer token checks
- Organization context for repository scoping
- The posting policy, account mapping and escalation provider
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hera.application.context import OrganizationContext
from hera.domain.posting.services import JournalProposalProvider
from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from hera.domain.shared.exceptions import (
    AuthenticationError,
    ErrorCode,
    ValidationError,
)
from hera.infrastructure.integration.ai import OllamaJournalProposalProvider
from hera.infrastructure.persistence.sqlalchemy import create_engine
from hera.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from hera.presentation.api.config import (
    build_posting_policy,
    get_api_settings,
    load_account_mapping,
)
from hera_auth import InvalidTokenError, JWTService
from hera_config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

API_VERSION_HEADER = "X-HERA-API-Version"
SUPPORTED_API_VERSION = "v2"

# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_database_url() -> str:
    """
    Get database URL from application settings.

    Returns
    -------
    Database URL string
    """
    url = get_settings().database_url

    # Ensure data directory exists for SQLite
    if url.startswith("sqlite") and ":memory:" not in url:
        db_path = url.split("///")[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return url


# -----------------------------------------------------------------------------
# Database Engine & Session (Singleton)
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """
    Get the shared async database engine (singleton).

    The engine manages the connection pool and is reused across all requests.
    """
    return create_engine(get_database_url(), echo=False)


@lru_cache(maxsize=1)
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get the shared async session maker (singleton).

    Returns
    -------
    async_sessionmaker configured with the shared engine
    """
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


SessionMaker = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]


async def get_db_session(
    session_maker: SessionMaker,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Creates an async session for the request using the shared engine/pool.

    Yields
    ------
    AsyncSession for database operations
    """
    async with session_maker() as session:
        yield session


# Type alias for injected session
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# -----------------------------------------------------------------------------
# Posting Engine Configuration
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_account_mapping() -> AccountMappingTable:
    """Get the account mapping table loaded at process start."""
    return load_account_mapping(get_api_settings())


@lru_cache(maxsize=1)
def get_posting_policy() -> PostingPolicy:
    """Get the global posting policy."""
    return build_posting_policy(get_api_settings())


@lru_cache(maxsize=1)
def get_proposal_provider() -> Optional[JournalProposalProvider]:
    """
    Get the escalation provider, or None when AI escalation is disabled.

    Without a provider every escalation degrades to "not relevant".
    """
    settings = get_api_settings()
    if not settings.ai_enabled:
        return None
    return OllamaJournalProposalProvider(
        model=settings.ai_model,
        base_url=settings.ai_base_url,
        timeout=settings.ai_timeout,
    )


AccountMapping = Annotated[AccountMappingTable, Depends(get_account_mapping)]
Policy = Annotated[PostingPolicy, Depends(get_posting_policy)]
ProposalProvider = Annotated[
    Optional[JournalProposalProvider],
    Depends(get_proposal_provider),
]


# -----------------------------------------------------------------------------
# API Version & Authentication
# -----------------------------------------------------------------------------


async def require_api_version(
    api_version: Annotated[Optional[str], Header(alias=API_VERSION_HEADER)] = None,
) -> str:
    """Reject requests that do not speak the current API version."""
    if api_version != SUPPORTED_API_VERSION:
        raise ValidationError(
            f"Header {API_VERSION_HEADER} must be '{SUPPORTED_API_VERSION}'",
            code=ErrorCode.INVALID_API_VERSION,
        )
    return api_version


def get_jwt_service(
    settings: Settings = Depends(get_api_settings),
) -> JWTService:
    """Get JWT service configured with API settings."""
    return JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        access_token_expire_hours=settings.jwt_access_token_expire_hours,
    )


async def get_organization_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    jwt_service: JWTService = Depends(get_jwt_service),
) -> OrganizationContext:
    """
    Resolve the tenant the bearer token is bound to.

    Raises
    ------
    AuthenticationError
        MISSING_AUTHORIZATION without a bearer token, INVALID_TOKEN when
        the token does not verify or is not an access token
    """
    if credentials is None:
        raise AuthenticationError(
            "Authorization header with a bearer token is required",
            ErrorCode.MISSING_AUTHORIZATION,
        )

    try:
        payload = jwt_service.verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Invalid token: %s", e)
        raise AuthenticationError() from e

    if not payload.is_access_token():
        logger.warning("Non-access token used by %s", payload.subject)
        raise AuthenticationError("Invalid token type")

    request.state.organization_id = payload.organization_id
    return OrganizationContext.from_values(
        organization_id=payload.organization_id,
        subject=payload.subject,
    )


# Type alias for injected organization context
CurrentOrganization = Annotated[
    OrganizationContext,
    Depends(get_organization_context),
]


# -----------------------------------------------------------------------------
# Repository Factory
# -----------------------------------------------------------------------------


async def get_repository_factory(
    session: DBSession,
    session_maker: SessionMaker,
    organization_context: CurrentOrganization,
) -> SQLAlchemyRepositoryFactory:
    """
    Get repository factory for the authenticated tenant.

    The audit repository writes through its own sessions from the
    session maker, independent of the request session.
    """
    return SQLAlchemyRepositoryFactory(
        session=session,
        organization_context=organization_context,
        session_maker=session_maker,
    )


# Type alias for injected repository factory
RepoFactory = Annotated[SQLAlchemyRepositoryFactory, Depends(get_repository_factory)]
