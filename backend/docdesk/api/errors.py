"""
Exception handlers.

Every failure leaves the API in the standard envelope
``{"success": false, "message": ..., "errors"?: [...]}``. Unhandled
exceptions are logged with their traceback and reported with a generic
message only.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from docdesk.core.exceptions import CredentialsError, DocDeskError, FieldError, ValidationError
from docdesk.schemas.common import error_response

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # ("body", "title") -> "title"; ("query", "limit") -> "limit"
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header", "form")]
    return ".".join(parts) or "request"


async def docdesk_error_handler(request: Request, exc: DocDeskError):
    headers = None
    if isinstance(exc, CredentialsError):
        headers = {"WWW-Authenticate": "Bearer"}
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return error_response(exc.status_code, exc.message, errors=errors, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        FieldError(field=_field_name(error.get("loc", ())), message=error.get("msg", "Invalid value"))
        for error in exc.errors()
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {request.url.path}: {exc.detail}")
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests. Please try again later.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocDeskError, docdesk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
