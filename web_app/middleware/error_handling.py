"""
Exception handlers for consistent error responses.

Every error leaves the API as ``{"error": message, "code": CODE}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ephemera.errors import AppError

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    429: "RATE_LIMIT_EXCEEDED",
}


def _envelope(message: str, code: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message, "code": code}, status_code=status_code)


def register_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Map AppError, validation and HTTP errors to the JSON error envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(
                f"Request error in {request.url.path}: {exc.code} {exc.message} {exc.details}",
                exc_info=exc,
            )
        else:
            logger.warning(f"Request error in {request.url.path}: {exc.code} {exc.message}")
        return _envelope(exc.message, exc.code, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"invalid request: {location} {first.get('msg', '')}".strip()
        else:
            message = "invalid request"
        logger.warning(f"Validation error in {request.url.path}: {message}")
        return _envelope(message, "BAD_REQUEST", 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "BAD_REQUEST")
        message = exc.detail if isinstance(exc.detail, str) else "request failed"
        return _envelope(message.lower(), code, exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=exc)
        return _envelope("internal server error", "INTERNAL_ERROR", 500)
