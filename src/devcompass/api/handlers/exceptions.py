"""
Exception Handlers for FastAPI Application.

Render every error as a JSON body of the form {"error": ...}.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcompass.config import settings
from devcompass.utils.exceptions import InternalError, RateLimited, WaitlistError
from devcompass.utils.logger import get_logger

logger = get_logger(__name__)


async def waitlist_exception_handler(
    request: Request, exc: WaitlistError
) -> JSONResponse:
    """Render a WaitlistError with its status code.

    Internal error details are stripped in production; they were already
    logged where the error was raised.
    """
    content = exc.to_response()
    if isinstance(exc, InternalError) and settings.IS_PRODUCTION:
        content.pop("details", None)

    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after_seconds)}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing errors.

    Unknown paths and unsupported methods on known paths both answer 404, so
    the API does not reveal which methods a path supports.
    """
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Endpoint not found"},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions and answer with a generic 500."""
    logger.error(
        "Server error",
        extra={
            "extra_fields": {
                "http_path": request.url.path,
                "error": str(exc),
                "error_type": type(exc).__name__,
            }
        },
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
