"""Translate treasury errors into structured HTTP responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from core.errors import (
    ChainError,
    DeadlineExceeded,
    InsufficientEarnings,
    InsufficientReserve,
    NotFound,
    ServiceUnavailable,
    TransactionFailed,
    TreasuryError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; first match wins
STATUS_CODES = [
    (ValidationError, 400),
    (InsufficientReserve, 400),
    (InsufficientEarnings, 400),
    (NotFound, 404),
    (TransactionFailed, 502),
    (ServiceUnavailable, 503),
    (ChainError, 503),
    (DeadlineExceeded, 504),
]


def status_code_for(exc: TreasuryError) -> int:
    for error_type, status_code in STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def treasury_error_handler(request: Request, exc: TreasuryError) -> JSONResponse:
    """Render any TreasuryError as {"error": kind, "message": ..., **figures}."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    body = ErrorResponse(error=exc.kind, message=str(exc), **exc.details())
    return JSONResponse(status_code=status_code, content=body.model_dump())
