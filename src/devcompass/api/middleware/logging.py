"""
Request Logging Middleware.

Emits one structured "Request completed" record per request for CloudWatch
Logs Insights, tagged with a correlation id that every record logged while
handling the request also carries.
"""

import logging
import time
import uuid
from typing import Any

from fastapi import Request

from devcompass.utils.logger import (
    clear_correlation_ids,
    get_logger,
    set_correlation_id,
)
from devcompass.utils.rate_limiter import get_client_ip

logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    """Caller-supplied X-Request-ID, else the API Gateway trace root, else a new id."""
    trace_id = request.headers.get("X-Amzn-Trace-Id", "")
    return (
        request.headers.get("X-Request-ID")
        or trace_id.rpartition("Root=")[2].split(";")[0]
        or uuid.uuid4().hex
    )


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


async def log_requests_middleware(request: Request, call_next: Any) -> Any:
    """Log each request once it completes and echo its correlation id.

    Client errors (validation failures, duplicates, rate limiting) are logged
    at WARNING and server errors at ERROR, so they can be filtered by level.

    Args:
        request: FastAPI Request object containing request details.
        call_next: Callable that processes the request and returns the response.

    Returns:
        Response: The response from the next middleware/handler, with an
        X-Request-ID header.
    """
    started = time.perf_counter()

    clear_correlation_ids()
    request_id = _request_id(request)
    set_correlation_id(request_id=request_id)

    response = await call_next(request)

    logger.log(
        _level_for(response.status_code),
        "Request completed",
        extra={
            "extra_fields": {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "client_ip": get_client_ip(request),
                "user_agent": request.headers.get("User-Agent", ""),
                "rate_limit_remaining": response.headers.get("RateLimit-Remaining"),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        },
    )

    response.headers["X-Request-ID"] = request_id
    return response
