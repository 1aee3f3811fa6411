"""FastAPI middleware for request tracking, timing, and error handling.

Adds:
- X-Request-ID header (generated if not provided)
- X-Process-Time header (request duration)
- Structured logging per request
- Exception handlers for the workflow error hierarchy
"""

import logging
import time
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import WorkflowAutomationError, WorkflowValidationError

logger = logging.getLogger(__name__)


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Add request ID and timing to every request/response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.error(
                "Unhandled exception on %s %s after %.0fms: %s",
                request.method, request.url.path, duration_ms, exc,
                exc_info=True,
            )
            # Don't expose error details to clients in production
            if get_settings().is_production:
                error_detail = "Internal server error"
            else:
                error_detail = str(exc) or "Internal server error"
            return JSONResponse(
                status_code=500,
                content={"detail": error_detail, "error_code": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = (time.monotonic() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        if not request.url.path.rstrip("/").endswith("/health"):
            logger.log(
                log_level,
                "%s %s -> %s (%.0fms)",
                request.method, request.url.path, response.status_code, duration_ms,
            )

        return response


def _error_body(request: Request, exc: WorkflowAutomationError) -> dict:
    body = {
        "detail": exc.message,
        "error_code": exc.error_code,
        "request_id": getattr(request.state, "request_id", None),
    }
    if isinstance(exc, WorkflowValidationError):
        body["kind"] = exc.kind
    return body


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(WorkflowAutomationError)
    async def workflow_error_handler(request: Request, exc: WorkflowAutomationError):
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc))

    @app.exception_handler(ValidationError)
    async def payload_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.errors(include_url=False, include_context=False),
                "error_code": "invalid_payload",
                "request_id": getattr(request.state, "request_id", None),
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "error_code": "bad_request",
                "request_id": getattr(request.state, "request_id", None),
            },
        )
