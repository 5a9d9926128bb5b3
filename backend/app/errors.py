"""Mapping of marketplace errors to HTTP responses.

Every lifecycle error is converted here, so none escapes the API boundary
as an unhandled exception. Bodies are ``{"detail": ..., "code": ...}``.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ezclear.marketplace.errors import (
    DuplicateApplicationError,
    InvalidRequestError,
    InvalidTransitionError,
    JobAlreadyAssignedError,
    MarketplaceError,
    NotFoundError,
    NotOwnerError,
    UpstreamUnavailableError,
)

from .logging_config import get_logger

logger = get_logger("errors")

# Checked in order; subclasses before their parents
ERROR_STATUS_CODES: list[tuple[type[MarketplaceError], int]] = [
    (JobAlreadyAssignedError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (NotOwnerError, status.HTTP_403_FORBIDDEN),
    (InvalidTransitionError, status.HTTP_400_BAD_REQUEST),
    (DuplicateApplicationError, status.HTTP_400_BAD_REQUEST),
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (UpstreamUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(exc: MarketplaceError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} | {exc.code} | {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} | rejected | {exc.code} | {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": exc.code})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "code": InvalidRequestError.code},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} | unexpected error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "internal_error"},
    )
