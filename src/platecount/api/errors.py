"""Mapping of domain errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from platecount.domain.errors import (
    BatchFinalizedError,
    ConflictError,
    DomainError,
    EmptyBatchError,
    InvalidStateError,
    NotFoundError,
    SelfAttestationError,
    UnverifiedAttestorError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (BatchFinalizedError, 423),
    (EmptyBatchError, 409),
    (SelfAttestationError, 409),
    (UnverifiedAttestorError, 409),
    (InvalidStateError, 409),
    (ConflictError, 409),
    (ValidationError, 422),
]


def status_for(error: DomainError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return code
    return 400


async def domain_error_handler(request: Request, error: DomainError) -> JSONResponse:
    code = status_for(error)
    logger.info("%s %s -> %s %s: %s", request.method, request.url.path, code, type(error).__name__, error)
    return JSONResponse(status_code=code, content={"detail": str(error), "error": type(error).__name__})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
