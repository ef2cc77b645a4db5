"""Request logging middleware using structlog."""

import logging
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from staffing_api.config.settings import settings

logger = structlog.get_logger()


def configure_logging() -> None:
    """Configure structlog for structured JSON logging."""
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Load balancer and orchestrator probes, logged at debug level only
PROBE_PATHS = ("/health", "/api/v1/health")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every request with its caller and outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        probe = request.url.path.startswith(PROBE_PATHS)
        start_time = time.perf_counter()

        (logger.debug if probe else logger.info)(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params),
            client=request.client.host if request.client else None,
        )

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code >= 400:
            log_method = logger.warning
        elif probe:
            log_method = logger.debug
        else:
            log_method = logger.info
        # Set by AuthMiddleware, which runs inside this one
        log_method(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            user_id=getattr(request.state, "user_id", None),
            role=getattr(request.state, "user_role", None),
        )

        response.headers["X-Request-ID"] = request_id
        return response
