"""
intuition_trust.middleware — HTTP plumbing shared by the app factory.

JSON logs tagged with the request ID, per-IP rate limiting on the data routes,
CORS, and a last-resort handler that never leaks internals.
"""

import logging
import os
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

REQUEST_ID_HEADER = "X-Request-ID"
DATA_RATE_LIMIT = "60/minute"

current_request_id: ContextVar[str] = ContextVar("current_request_id", default="-")


# ─── Logging ──────────────────────────────────────────────────────

class RequestIdFilter(logging.Filter):
    """Stamp every record with the ID of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True


def setup_structured_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach one JSON handler to the ``intuition_trust`` logger tree (stderr)."""
    from pythonjsonlogger.json import JsonFormatter

    pkg_logger = logging.getLogger("intuition_trust")
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    pkg_logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not any(getattr(h, "_intuition_json", False) for h in pkg_logger.handlers):
        handler = logging.StreamHandler()
        handler._intuition_json = True
        handler.addFilter(RequestIdFilter())
        handler.setFormatter(JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
            rename_fields={"asctime": "ts", "levelname": "level", "name": "logger"},
            static_fields={"service": "intuition-trust"},
        ))
        pkg_logger.addHandler(handler)

    return pkg_logger


logger = setup_structured_logging()


# ─── Rate limiting ────────────────────────────────────────────────

limiter = Limiter(
    key_func=get_remote_address,
    enabled=os.environ.get("RATELIMIT_ENABLED", "true").lower() not in ("false", "0", "no"),
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same envelope as every other error."""
    logger.warning("Rate limit hit on %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": f"Rate limit exceeded ({exc.detail}). Try again later."},
        headers={"Retry-After": "60"},
    )


# ─── Request logging ──────────────────────────────────────────────

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign or propagate a request ID and log one line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        token = current_request_id.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %d", request.method, request.url.path, response.status_code,
                extra={
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    "client": request.client.host if request.client else None,
                },
            )
        finally:
            current_request_id.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


# ─── Error handling ───────────────────────────────────────────────

async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled %s on %s", type(exc).__name__, request.url.path,
                 exc_info=(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def apply_middleware(app: FastAPI, allowed_origins: Optional[list[str]] = None) -> None:
    """Install CORS, rate limiting, request logging and error handlers on ``app``."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, internal_error_handler)
    app.add_middleware(RequestLoggingMiddleware)
