"""FastAPI application factory.

Creates and configures the FastAPI application with all routers,
middleware, and exception handlers.

API Versioning:
    All API endpoints are versioned under the /api/v2/ prefix and require
    the ``X-HERA-API-Version: v2`` header. The health check endpoint
    remains unversioned at /health.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from hera.infrastructure.persistence.sqlalchemy import create_tables
from hera.presentation.api.dependencies import (
    get_engine,
    get_proposal_provider,
    require_api_version,
)
from hera.presentation.api.exception_handlers import setup_exception_handlers
from hera.presentation.api.routers import batches_router, transactions_router
from hera.presentation.api.schemas import HealthResponse
from hera_config.settings import Settings, get_settings


@lru_cache(maxsize=1)
def _configure_logging() -> None:
    """Configure application logging.

    Sets up logging for the hera packages with:
    - Console output with timestamps and module names
    - Configurable log level for hera modules (from settings)
    - WARNING level for noisy third-party libraries
    """
    settings = get_settings()
    log_level_str = settings.log_level.upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,  # Override any existing config
    )

    logging.getLogger("hera").setLevel(log_level)
    logging.getLogger("hera_auth").setLevel(log_level)

    # Quiet down noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

# API version info
API_VERSION = "2.0.0"
API_V2_PREFIX = "/api/v2"

OPENAPI_TAGS = [
    {
        "name": "Transactions",
        "description": """Universal Finance Event ingestion.

**Pipeline:**
1. Validate the event and the tenant binding of the bearer token
2. Classify GL relevance (rules first, AI escalation for unknown types)
3. Build a balanced journal from the account mapping table
4. Post immediately, or defer small routine events into a batch group
5. Record the outcome in the audit log

**Immediate posting:** amounts above the immediate threshold, critical
smart codes, receipts and payments, and AI-built journals.
""",
    },
    {
        "name": "Batches",
        "description": """Batch group maintenance.

Small transactions of the same type and date are summarized into one
journal once their running total reaches the batch threshold. The sweep
flushes groups that never got there (end-of-day processing).
""",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
    {
        "name": "Info",
        "description": "API information and discovery.",
    },
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting HERA API v%s...", API_VERSION)
    engine = get_engine()
    await _init_database_schema(engine)
    await _check_escalation_provider()
    yield

    # Shutdown - dispose the shared engine and its connection pool
    logger.info("Shutting down HERA API...")
    await engine.dispose()
    logger.info("Database connections closed")


async def _init_database_schema(engine: AsyncEngine) -> None:
    """Initialize database schema (if not existent) and verify connectivity."""
    try:
        await create_tables(engine)
    except ConnectionRefusedError:
        logger.critical("Could not connect to the database.")
        raise SystemExit(1) from None


async def _check_escalation_provider() -> None:
    """Report whether AI escalation is usable; never blocks startup."""
    provider = get_proposal_provider()
    if provider is None:
        logger.info("AI escalation disabled (AI_ENABLED=false)")
        return

    if await provider.health_check():
        logger.info("AI escalation available (model: %s)", provider.model_name)
    else:
        logger.warning(
            "AI escalation unavailable at startup; unknown transaction types "
            "will not be posted until it recovers",
        )


def create_v2_router() -> APIRouter:
    """Create the v2 API router with all endpoints.

    Every v2 route checks the API version header before anything else.
    """
    v2_router = APIRouter(dependencies=[Depends(require_api_version)])

    v2_router.include_router(
        transactions_router,
        prefix="/transactions",
        tags=["Transactions"],
    )
    v2_router.include_router(batches_router, prefix="/batches", tags=["Batches"])

    return v2_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing.

    Returns
    -------
    Configured FastAPI application instance.
    """
    # Configure logging on first app creation (not on module import)
    _configure_logging()

    if settings is None:
        settings = get_settings()

    app_name = settings.app_name

    app = FastAPI(
        title=f"{app_name} API",
        description=(
            "**Auto-posting engine**: turns universal finance events into "
            "balanced general-ledger journals."
        ),
        version=API_VERSION,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def track_processing_time(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        # Read back by ResponseMetadata.from_request
        request.state.started_at = time.perf_counter()
        return await call_next(request)

    # Register domain exception handlers for consistent error responses
    setup_exception_handlers(app)

    app.include_router(create_v2_router(), prefix=API_V2_PREFIX)

    # Health check endpoint (unversioned - always accessible)
    @app.get("/health", tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Unversioned for load balancer/monitoring compatibility.
        """
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            api_versions=["v2"],
        )

    @app.get("/", tags=["Info"])
    async def root() -> dict:
        """API root endpoint with version information."""
        return {
            "name": f"{app_name} API",
            "version": API_VERSION,
            "docs": "/docs" if settings.api_debug else None,
            "api_base": API_V2_PREFIX,
            "endpoints": {
                "health": "/health",
                "post_transaction": f"{API_V2_PREFIX}/transactions/post",
                "transaction_journal": (
                    f"{API_V2_PREFIX}/transactions/{{transaction_id}}/journal"
                ),
                "batch_sweep": f"{API_V2_PREFIX}/batches/sweep",
            },
        }

    return app


# Application instance for uvicorn
app = create_app()
