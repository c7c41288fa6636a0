"""Shared domain building blocks."""

from hera.domain.shared.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    FieldError,
    ValidationError,
)
from hera.domain.shared.time import (
    posting_period_for,
    utc_now,
)

__all__ = [
    "AccessDeniedError",
    "AuthenticationError",
    "DomainException",
    "EntityNotFoundError",
    "ErrorCode",
    "FieldError",
    "ValidationError",
    "posting_period_for",
    "utc_now",
]
