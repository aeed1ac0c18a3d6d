"""
FastAPI exception handlers that map application exceptions to HTTP responses.

Controllers and repositories raise `cattery.exceptions.base.*`; these handlers
produce stable JSON payloads (via .to_payload()) with the matching status code
(via .http_status()).
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging
from cattery.exceptions.base import (
    AppError,
    RepositoryError,
    InvalidFieldError,
    NotFoundError,
    ParameterMissingError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


# Most specific first; the mapping itself lives on the exception classes.

async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """
    404 Not Found.
    """
    logger.info("NotFoundError for %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
    """
    422 Unprocessable Entity for unexpected fields.
    """
    logger.info("InvalidFieldError for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
    logger.info("ValidationFailedError for %s %s: fields=%s", request.method, request.url.path, exc.fields)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def parameter_missing_handler(request: Request, exc: ParameterMissingError) -> JSONResponse:
    """
    400 Bad Request when the nested resource key (e.g. `cat`) is missing.
    """
    logger.info("ParameterMissingError for %s %s: param=%s", request.method, request.url.path, exc.param)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """
    Fallback for general repository errors. The message is client-safe;
    the underlying cause was already logged where it was caught.
    """
    logger.warning("RepositoryError for %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("AppError for %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    """Register all handlers on an app (called from the app factory)."""
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InvalidFieldError, invalid_field_handler)
    app.add_exception_handler(ValidationFailedError, validation_failed_handler)
    app.add_exception_handler(ParameterMissingError, parameter_missing_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(AppError, app_error_handler)
