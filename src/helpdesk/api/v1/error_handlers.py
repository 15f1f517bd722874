"""
FastAPI exception handlers mapping repository exceptions to HTTP responses.

Status codes and bodies come from the exceptions themselves
(`http_status()` / `to_payload()`), so the handlers only log and wrap.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from helpdesk.exceptions.base import (
    RepositoryError,
    DuplicateError,
    InvalidFieldError,
    InvalidInputError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _request_context(request: Request, exc: RepositoryError) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "code": exc.error_code,
        "fields": exc.fields,
    }


async def duplicate_error_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    """409 Conflict."""
    logger.info("api.duplicate_error", extra=_request_context(request, exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_field_handler(request: Request, exc: InvalidFieldError) -> JSONResponse:
    """422 for unknown or guarded fields."""
    logger.info("api.invalid_field", extra=_request_context(request, exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.info("api.invalid_input", extra=_request_context(request, exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("api.not_found", extra=_request_context(request, exc))
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Fallback, 400 unless the error code says otherwise. Never includes DB internals."""
    logger.warning("api.repository_error", extra={**_request_context(request, exc), "error": str(exc)})
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    # Most specific first
    app.add_exception_handler(DuplicateError, duplicate_error_handler)
    app.add_exception_handler(InvalidFieldError, invalid_field_handler)
    app.add_exception_handler(InvalidInputError, invalid_input_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
