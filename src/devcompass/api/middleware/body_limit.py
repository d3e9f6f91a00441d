"""
Body Size Middleware.

Rejects requests whose declared Content-Length exceeds MAX_BODY_BYTES before
the body is read. Bodies sent without a Content-Length are measured again by
the waitlist route after reading.
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from devcompass.config import settings
from devcompass.utils.exceptions import PayloadTooLargeError
from devcompass.utils.logger import get_logger

logger = get_logger(__name__)


def payload_too_large() -> PayloadTooLargeError:
    return PayloadTooLargeError(
        f"Request body too large (maximum {settings.MAX_BODY_BYTES} bytes)"
    )


async def body_limit_middleware(request: Request, call_next: Any) -> Any:
    """Answer HTTP 413 when Content-Length exceeds the ceiling.

    Args:
        request: FastAPI Request object containing request details.
        call_next: Callable that processes the request and returns the response.

    Returns:
        Response: The response from the next middleware/handler, or HTTP 413.
    """
    content_length = request.headers.get("Content-Length")
    if content_length and content_length.isdigit():
        if int(content_length) > settings.MAX_BODY_BYTES:
            logger.warning(
                "Request body too large",
                extra={
                    "extra_fields": {
                        "http_path": request.url.path,
                        "content_length": int(content_length),
                    }
                },
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content=payload_too_large().to_response(),
            )

    return await call_next(request)
