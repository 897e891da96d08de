"""Map domain errors to HTTP errors and render every error in the response envelope."""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.model.errors import (
    AuthenticationError,
    DomainError,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    ProviderUnavailableError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching base class wins
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ProviderUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(error: DomainError) -> HTTPException:
    """Translate a domain error. Messages of 5xx errors are not exposed to clients."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            if status_code >= 500:
                return HTTPException(status_code=status_code, detail="Service temporarily unavailable")
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def _envelope(status_code: int, error: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error}, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _envelope(status.HTTP_400_BAD_REQUEST, message)


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    http_exc = to_http_exception(exc)
    if http_exc.status_code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "error": str(exc), "errorType": type(exc).__name__})
    return _envelope(http_exc.status_code, str(http_exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path, "errorType": type(exc).__name__})
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
