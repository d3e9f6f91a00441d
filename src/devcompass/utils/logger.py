"""
JSON Logging for the Waitlist API.

Every record is written to stdout as one JSON object so CloudWatch Logs
Insights can filter waitlist events by field (submission_id, client_ip, tier).
Email addresses are never logged in full; pass them through mask_email().

Features:
- Correlation IDs (request_id) for request tracing
- Lambda context integration (function_name, aws_request_id, memory_limit)
- Performance metrics (duration_ms) via log_performance()
- Log level from the LOG_LEVEL environment variable

Usage:
    from devcompass.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Message", extra={"extra_fields": {"submission_id": "abc"}})
"""

import json
import logging
import os
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Optional

# LOG_LEVEL=DEBUG also logs per-step and per-store-call timings
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL, logging.INFO)

# Correlation IDs for the request currently being handled
_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every LogRecord carries; anything else was passed via `extra`
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "extra_fields"}


class CloudWatchJSONFormatter(logging.Formatter):
    """Renders a LogRecord as a single-line JSON object.

    extra_fields override correlation ids, which override the base fields.
    Attributes set directly through extra= or a filter never override.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Correlation IDs from the current request context
        log_data.update(_log_context.get())

        # Custom fields passed as extra={"extra_fields": {...}}
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        # Attributes set directly through extra= or by filters
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["exception_type"] = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )

        return json.dumps(log_data, default=str)


class LambdaContextFilter(logging.Filter):
    """Injects Lambda runtime context into every record."""

    def __init__(self, context: Any):
        super().__init__()
        self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        record.function_name = getattr(self.context, "function_name", None)
        record.function_version = getattr(self.context, "function_version", None)
        record.aws_request_id = getattr(self.context, "aws_request_id", None)
        if hasattr(self.context, "memory_limit_in_mb"):
            record.memory_limit_mb = self.context.memory_limit_in_mb
        return True


def configure_logging(context: Optional[Any] = None) -> None:
    """Configure the root logger with the JSON formatter.

    Args:
        context: Lambda context object (optional). If provided, its
            function_name, aws_request_id and memory limit are added to
            every record.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(LOG_LEVEL)

    # Remove existing handlers to avoid duplicate logs
    root_logger.handlers = []

    # Lambda and containers both capture stdout/stderr
    handler = logging.StreamHandler()
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(CloudWatchJSONFormatter())

    if context:
        handler.addFilter(LambdaContextFilter(context))

    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger; records reach the JSON handler via the root logger."""
    return logging.getLogger(name)


def set_correlation_id(request_id: Optional[str] = None) -> None:
    """Set the correlation ID added to all subsequent log records.

    Args:
        request_id: Request ID (from X-Request-ID, API Gateway or Lambda context).
    """
    if request_id:
        _log_context.set({**_log_context.get(), "request_id": request_id})


def clear_correlation_ids() -> None:
    """Clear correlation IDs from log context."""
    _log_context.set({})


def mask_email(email: Optional[str]) -> str:
    """Mask an email address for logging: "jane@example.com" -> "j***@example.com"."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


@contextmanager
def log_performance(operation: str, **extra_fields):
    """Context manager for logging operation performance.

    Logs completion or failure of an operation together with its duration.
    Exceptions are logged and re-raised.

    Args:
        operation: Operation name (e.g., "find_by_email", "insert_submission").
        **extra_fields: Additional fields to include in log records.

    Example:
        with log_performance("scan_submissions", table="waitlist"):
            items = store.scan_all()
    """
    logger = get_logger(__name__)
    start_time = time.time()

    try:
        yield
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Failed {operation}",
            extra={
                "extra_fields": {
                    "operation": operation,
                    "duration_ms": round(duration_ms, 2),
                    "status": "error",
                    "error": str(e),
                    **extra_fields,
                }
            },
        )
        raise

    duration_ms = (time.time() - start_time) * 1000
    logger.debug(
        f"Completed {operation}",
        extra={
            "extra_fields": {
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                "status": "success",
                **extra_fields,
            }
        },
    )
