"""Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with the error envelope
shared by all versioned endpoints.

Error Response Format:
    {
        "success": false,
        "error": {
            "code": "MACHINE_READABLE_ERROR_CODE",
            "message": "Human-readable error message",
            "validation_errors": [...],   # VALIDATION_FAILED only
            "posting_errors": [...],      # PROCESSING_FAILED only
            "details": {...}              # diagnostics, when available
        },
        "metadata": {
            "processing_time_ms": 1.2,
            "smart_code": "...",
            "organization_id": "...",
            "processed_at": "..."
        }
    }

Usage:
    from hera.presentation.api.exception_handlers import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hera.domain.posting.exceptions import PostingError
from hera.domain.shared.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)
from hera.presentation.api.schemas.common import (
    ErrorBody,
    ErrorResponse,
    FieldErrorResponse,
    PostingErrorResponse,
    ResponseMetadata,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Code to HTTP Status Mapping
# =============================================================================

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request
    ErrorCode.INVALID_API_VERSION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_JSON: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    # 401 Unauthorized
    ErrorCode.MISSING_AUTHORIZATION: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    # 403 Forbidden
    ErrorCode.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    # 404 Not Found
    ErrorCode.TRANSACTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.JOURNAL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # 422 Unprocessable Entity - the event was valid but could not be posted
    ErrorCode.PROCESSING_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNBALANCED_JOURNAL: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PERSISTENCE_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PERSISTENCE_TIMEOUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # 500 Internal Server Error
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _get_status_for_exception(exc: DomainException) -> int:
    """Determine HTTP status code for a domain exception.

    Uses the error code mapping, with fallback based on exception type.
    """
    if exc.code in ERROR_CODE_TO_STATUS:
        return ERROR_CODE_TO_STATUS[exc.code]

    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, PostingError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY

    return status.HTTP_400_BAD_REQUEST


def _create_error_response(  # NOQA: PLR0913
    request: Request,
    status_code: int,
    message: str,
    code: str,
    validation_errors: Optional[list[dict[str, str]]] = None,
    posting_errors: Optional[list[dict[str, str]]] = None,
    details: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    body = ErrorResponse(
        error=ErrorBody(
            code=code,
            message=message,
            validation_errors=(
                [FieldErrorResponse(**e) for e in validation_errors]
                if validation_errors is not None
                else None
            ),
            posting_errors=(
                [PostingErrorResponse(**e) for e in posting_errors]
                if posting_errors is not None
                else None
            ),
            details=details or None,
        ),
        metadata=ResponseMetadata.from_request(request),
    )
    content = body.model_dump(mode="json")
    # Optional error fields are omitted rather than rendered as null
    content["error"] = {k: v for k, v in content["error"].items() if v is not None}
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        logger.info(
            "Rejected request on %s %s: %s (code=%s, %d field error(s))",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            len(exc.field_errors),
        )
        return _create_error_response(
            request,
            status_code=_get_status_for_exception(exc),
            message=exc.message,
            code=exc.code.value,
            validation_errors=(
                [fe.to_dict() for fe in exc.field_errors]
                if exc.code is ErrorCode.VALIDATION_FAILED
                else None
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Path, query and typed body errors share the domain error shape."""
        field_errors = [
            {
                "field": ".".join(str(p) for p in err.get("loc", ())) or "request",
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return _create_error_response(
            request,
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Request failed validation",
            code=ErrorCode.VALIDATION_FAILED.value,
            validation_errors=field_errors,
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_exception_handler(
        request: Request,
        exc: AuthenticationError,
    ) -> JSONResponse:
        return _create_error_response(
            request,
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=exc.message,
            code=exc.code.value,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AccessDeniedError)
    async def access_denied_exception_handler(
        request: Request,
        exc: AccessDeniedError,
    ) -> JSONResponse:
        logger.warning(
            "Access denied on %s %s: %s",
            request.method,
            request.url.path,
            exc.details,
        )
        return _create_error_response(
            request,
            status_code=status.HTTP_403_FORBIDDEN,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(PostingError)
    async def posting_exception_handler(
        request: Request,
        exc: PostingError,
    ) -> JSONResponse:
        """Posting failures surface as PROCESSING_FAILED with the cause listed.

        The request transaction was rolled back; the caller may retry with
        the same event.
        """
        logger.warning(
            "Posting failed on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )
        return _create_error_response(
            request,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="The event could not be posted",
            code=ErrorCode.PROCESSING_FAILED.value,
            posting_errors=[exc.to_dict()],
            details=exc.details,
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle all other domain exceptions with structured response."""
        status_code = _get_status_for_exception(exc)

        logger.warning(
            "Domain exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return _create_error_response(
                request,
                status_code=status_code,
                message="An internal error occurred",
                code=ErrorCode.INTERNAL_ERROR.value,
            )

        return _create_error_response(
            request,
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format.

        The client never sees the exception message or stack trace.
        """
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            request,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )
