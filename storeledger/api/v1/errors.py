"""Mapping of ledger errors to HTTP responses."""

import logging

from fastapi import HTTPException, status

from storeledger.domain.accounting.exceptions import (
    LedgerError,
    ValidationError,
    NotFoundError,
    ConflictError,
    StateError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StateError, status.HTTP_409_CONFLICT),
]


def ledger_http_exception(error: LedgerError) -> HTTPException:
    """Build an HTTPException carrying the structured error body."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=error.to_dict())


def internal_error(action: str, error: Exception) -> HTTPException:
    logger.exception(f"Error {action}: {str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}: {str(error)}",
    )
