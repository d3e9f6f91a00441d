"""
Rate Limiting Middleware.

Applies the two rate-limit tiers to the endpoints they guard. A rate-limited
request is answered with HTTP 429 here and never reaches the route handler.
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from devcompass.utils.exceptions import RateLimited
from devcompass.utils.logger import get_logger
from devcompass.utils.rate_limiter import RateLimitDecision, get_client_ip

logger = get_logger(__name__)

# (method, path) -> tier; routes not listed here are not rate limited
RATE_LIMITED_ROUTES = {
    ("POST", "/api/waitlist"): "submission",
    ("GET", "/api/health"): "general",
    ("GET", "/api/waitlist/stats"): "general",
    ("GET", "/api/schema"): "general",
}


def rate_limit_headers(decision: RateLimitDecision) -> Dict[str, str]:
    """Standard RateLimit-* headers for a decision."""
    return {
        "RateLimit-Limit": str(decision.limit),
        "RateLimit-Remaining": str(decision.remaining),
        "RateLimit-Reset": str(decision.retry_after_seconds),
    }


async def rate_limit_middleware(request: Request, call_next: Any) -> Any:
    """Rate limiting middleware for the waitlist API.

    Looks up the tier guarding the requested route and counts the request
    against the client's IP. Over-limit requests get HTTP 429 with the tier's
    message and retry hint; allowed responses carry RateLimit-* headers.

    Args:
        request: FastAPI Request object containing request details.
        call_next: Callable that processes the request and returns the response.

    Returns:
        Response: The response from the next middleware/handler, or HTTP 429 if rate limited.
    """
    tier = RATE_LIMITED_ROUTES.get((request.method, request.url.path))
    if tier is None:
        return await call_next(request)

    limiter = request.app.state.rate_limiter
    client_ip = get_client_ip(request)

    # Counter stores may block on a network round-trip
    decision: Optional[RateLimitDecision] = await run_in_threadpool(
        limiter.check, tier, client_ip
    )
    if decision is None:
        return await call_next(request)

    headers = rate_limit_headers(decision)

    if not decision.allowed:
        policy = limiter.policies[tier]
        error = RateLimited(
            policy.message,
            retry_after=policy.retry_after,
            retry_after_seconds=decision.retry_after_seconds,
        )
        headers["Retry-After"] = str(error.retry_after_seconds)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error.to_response(),
            headers=headers,
        )

    response = await call_next(request)
    response.headers.update(headers)
    return response
