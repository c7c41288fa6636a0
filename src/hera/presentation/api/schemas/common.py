"""Common schemas shared across API endpoints.

Every versioned endpoint answers with the same envelope:
``{success, data | error, metadata}``.
"""

import time
from datetime import UTC, datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class ResponseMetadata(BaseModel):
    """Request facts attached to every response, successful or not."""

    processing_time_ms: float = Field(..., description="Server-side duration")
    smart_code: Optional[str] = Field(None, description="Smart code of the event")
    organization_id: Optional[UUID] = Field(None, description="Authenticated tenant")
    processed_at: datetime = Field(default_factory=_utc_now)

    @classmethod
    def from_request(cls, request: Request) -> "ResponseMetadata":
        """Build metadata from the values routers store on ``request.state``."""
        state = request.state
        started_at = getattr(state, "started_at", None)
        elapsed = (time.perf_counter() - started_at) * 1000 if started_at else 0.0
        return cls(
            processing_time_ms=round(elapsed, 2),
            smart_code=getattr(state, "smart_code", None),
            organization_id=getattr(state, "organization_id", None),
        )


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class PostingErrorResponse(BaseModel):
    code: str
    message: str


class ErrorBody(BaseModel):
    code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Error message")
    validation_errors: Optional[list[FieldErrorResponse]] = None
    posting_errors: Optional[list[PostingErrorResponse]] = None
    details: Optional[dict[str, Any]] = Field(
        None,
        description="Diagnostics, e.g. the attempted lines of an unbalanced journal",
    )


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    success: bool = False
    error: ErrorBody
    metadata: ResponseMetadata

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": {
                    "code": "VALIDATION_FAILED",
                    "message": "Finance event failed validation",
                    "validation_errors": [
                        {"field": "lines", "message": "lines must be empty"},
                    ],
                },
                "metadata": {
                    "processing_time_ms": 3.1,
                    "smart_code": "HERA.RESTAURANT.FOH.ORDER.V1",
                    "organization_id": "550e8400-e29b-41d4-a716-446655440000",
                    "processed_at": "2024-12-05T14:30:00Z",
                },
            },
        },
    )


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    api_versions: list[str] = Field(default_factory=list)
