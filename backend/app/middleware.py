"""
Rail Complaint Desk - HTTP Middleware and Exception Handlers

Request logging, security response headers and the mapping from
exceptions to the error envelope {success: false, message, statusCode}.
"""
import logging
import time
import traceback
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .errors import AppError, ValidationError

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration for every request."""

    excluded_paths = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        if request.url.path not in self.excluded_paths:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({process_time * 1000:.1f} ms)"
            )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds common security headers to every response."""

    security_headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "0",
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Opener-Policy": "same-origin",
        "Cross-Origin-Resource-Policy": "same-origin",
        "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.security_headers.items():
            response.headers.setdefault(name, value)
        return response


def _validation_messages(exc: RequestValidationError) -> List[Dict[str, str]]:
    messages = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        messages.append({
            "field": ".".join(location) or "unknown",
            "message": error.get("msg", "Invalid value"),
        })
    return messages


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Typed errors raised by services are rendered verbatim."""
    logger.warning(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Boundary validation failures are 400s with per-field messages."""
    error = ValidationError("Validation failed", errors=_validation_messages(exc))
    logger.info(f"Validation failed on {request.method} {request.url.path}: {error.errors}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message, "statusCode": exc.status_code},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Anything untyped: full detail goes to the log, the caller sees a
    generic message unless running in development.
    """
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    content: Dict[str, Any] = {
        "success": False,
        "message": "Internal server error",
        "statusCode": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    if config.is_development():
        content["message"] = str(exc) or content["message"]
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
