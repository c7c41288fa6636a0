"""Shared utilities for SQLAlchemy repositories."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from hera.domain.posting.exceptions import PostingError
from hera.domain.shared.exceptions import ErrorCode

logger = logging.getLogger(__name__)


def ensure_uuid(value: UUID | str | None) -> UUID | None:
    """
    Ensure a value is a UUID, converting from string if necessary.

    Ids stored inside JSON columns come back as strings.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        return UUID(value)
    msg = f"Expected UUID or str, got {type(value).__name__}"
    raise TypeError(msg)


def to_json_safe(value: Any) -> Any:
    """Round-trip through JSON so Decimals, UUIDs and dates become strings."""
    return json.loads(json.dumps(value, default=str))


@contextmanager
def store_errors(operation: str, **details: Any) -> Iterator[None]:
    """
    Raise store failures inside the block as a retryable ``PostingError``.

    Covers driver and connection errors (``OperationalError``, ``DataError``,
    lost connections) so callers can audit them like any posting failure.
    The original error is logged, never exposed.
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            "Store failure during %s: %s (type: %s)",
            operation,
            str(e) or repr(e),
            type(e).__name__,
        )
        msg = f"Store failure during {operation}; retry the event"
        raise PostingError(
            msg,
            ErrorCode.PERSISTENCE_FAILED,
            {
                "store_operation": operation,
                "error_type": type(e).__name__,
                **{k: str(v) for k, v in details.items()},
            },
        ) from e
