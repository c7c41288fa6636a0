"""REST API presentation layer for HERA.

Structure:
    api/
    ├── app.py               # FastAPI application factory
    ├── config.py            # Settings, posting policy and account mapping
    ├── dependencies.py      # Dependency injection
    ├── exception_handlers.py
    ├── routers/             # API route handlers
    └── schemas/             # Pydantic request/response schemas
"""

from hera.presentation.api.app import create_app

__all__ = ["create_app"]
