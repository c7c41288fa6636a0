"""Shared domain exceptions and error codes.

This module defines the base exception hierarchy and error codes for the
entire domain layer. All domain exceptions should inherit from DomainException
to enable centralized exception handling in the presentation layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    # Request Errors (400)
    INVALID_API_VERSION = "INVALID_API_VERSION"
    INVALID_JSON = "INVALID_JSON"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Authentication Errors (401)
    MISSING_AUTHORIZATION = "MISSING_AUTHORIZATION"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization Errors (403)
    ACCESS_DENIED = "ACCESS_DENIED"

    # Not Found Errors (404)
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    JOURNAL_NOT_FOUND = "JOURNAL_NOT_FOUND"

    # Processing Errors (422)
    PROCESSING_FAILED = "PROCESSING_FAILED"
    UNBALANCED_JOURNAL = "UNBALANCED_JOURNAL"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    PERSISTENCE_TIMEOUT = "PERSISTENCE_TIMEOUT"

    # General Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainException(Exception):  # NOQA: N818
    """Base exception for all domain-related errors.

    This exception provides structured error information that can be
    used by the presentation layer to generate consistent API responses.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context (logged, exposed only as diagnostics)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


@dataclass(frozen=True)
class FieldError:
    """One field-level validation problem."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(DomainException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field_errors: list[FieldError] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
    ):
        super().__init__(message, code)
        self.field_errors = field_errors or []


class AccessDeniedError(DomainException):
    """Raised when the caller acts for a tenant it is not bound to."""

    def __init__(self, authenticated_org: UUID, requested_org: UUID):
        super().__init__(
            "Organization does not match the authenticated tenant",
            ErrorCode.ACCESS_DENIED,
            {
                "authenticated_organization_id": str(authenticated_org),
                "requested_organization_id": str(requested_org),
            },
        )


class EntityNotFoundError(DomainException):
    """Raised when a requested entity does not exist."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        code: ErrorCode = ErrorCode.TRANSACTION_NOT_FOUND,
    ):
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            code,
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class AuthenticationError(DomainException):
    """Raised when a request carries no usable bearer token."""

    def __init__(
        self,
        message: str = "Invalid or expired token",
        code: ErrorCode = ErrorCode.INVALID_TOKEN,
    ):
        super().__init__(message, code)
