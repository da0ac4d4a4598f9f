"""
Exception handlers - map domain errors to HTTP responses.

Every failure response has the shape {"detail": ..., "reason": ...} where
reason is the machine-readable code carried by the domain exception.
Unexpected exceptions become a generic 500; details stay in server logs.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from gatekeeper.domain.exceptions import (
    AccountNotVerified,
    AuthenticationError,
    AuthError,
    ConflictError,
    DependencyError,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: AccountNotVerified is an AuthenticationError
STATUS_BY_ERROR: tuple[tuple[type[AuthError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AccountNotVerified, status.HTTP_403_FORBIDDEN),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ConflictError, status.HTTP_409_CONFLICT),
    (DependencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

GENERIC_INTERNAL_DETAIL = "Internal server error"


def status_for(exc: AuthError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", exc.reason, request.method, request.url.path, exc)
    detail = GENERIC_INTERNAL_DETAIL if isinstance(exc, InternalError) else str(exc)
    return JSONResponse(status_code=status_code, content={"detail": detail, "reason": exc.reason})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_INTERNAL_DETAIL, "reason": InternalError.reason},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on an application."""
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
