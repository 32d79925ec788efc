"""
Exception handlers - map domain errors onto HTTP responses.

Validation and rate-limit errors are surfaced verbatim. Gateway and store
errors are logged with their cause and answered with a generic 500 so
that provider or database details never reach the client.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from src.domain.exceptions import (
    ConflictError,
    GatewayError,
    NotFoundError,
    PaymentNotAllowed,
    PaymentNotRequired,
    PaymentRejected,
    RateLimitError,
    RegistrationError,
    StoreError,
    ValidationError,
    VerificationFailed,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: list[tuple[type[RegistrationError], int]] = [
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (VerificationFailed, status.HTTP_400_BAD_REQUEST),
    (PaymentNotRequired, status.HTTP_400_BAD_REQUEST),
    (PaymentNotAllowed, status.HTTP_400_BAD_REQUEST),
    (PaymentRejected, status.HTTP_400_BAD_REQUEST),
]

GENERIC_ERROR = "Internal server error"


def validation_error_response(errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return validation_error_response({to_camel(field): message for field, message in exc.errors.items()})


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI's 422 as a 400 keyed by field name."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        location = [str(part) for part in error["loc"] if part != "body"]
        field = ".".join(location) or "body"
        errors.setdefault(field, error["msg"])
    return validation_error_response(errors)


async def handle_rate_limit_error(request: Request, exc: RateLimitError) -> JSONResponse:
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": str(exc)},
        headers=headers,
    )


async def handle_internal_error(request: Request, exc: RegistrationError) -> JSONResponse:
    logger.error(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc,
        exc_info=exc.__cause__ is not None,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_ERROR},
    )


async def handle_registration_error(request: Request, exc: RegistrationError) -> JSONResponse:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return await handle_internal_error(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on an application."""
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(RateLimitError, handle_rate_limit_error)
    app.add_exception_handler(GatewayError, handle_internal_error)
    app.add_exception_handler(StoreError, handle_internal_error)
    app.add_exception_handler(RegistrationError, handle_registration_error)
